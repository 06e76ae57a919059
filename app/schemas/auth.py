from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, EmailStr, Field

from app.models.user import UserRole
from app.schemas.common import CamelModel

CODE_PATTERN = r"^\d{6}$"
MIN_PASSWORD_LENGTH = 6
MAX_CUSTOM_EMOJIS = 6


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(_normalize_email)]


class LoginRequest(CamelModel):
    email: NormalizedEmail
    password: str


class RefreshRequest(CamelModel):
    refresh_token: str


class UserRead(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    bio: Optional[str]
    photo_url: Optional[str]
    role: UserRole
    custom_emojis: List[str]
    created_at: datetime


class AuthResponse(CamelModel):
    msg: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserRead


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenCheck(CamelModel):
    message: str = "Valid token"
    user: UserRead


class ProfileUpdateResponse(CamelModel):
    msg: str
    photo_url: Optional[str]
    user: UserRead


class CustomEmojisUpdate(CamelModel):
    custom_emojis: List[str] = Field(max_length=MAX_CUSTOM_EMOJIS)


class DeviceTokenUpdate(CamelModel):
    device_token: Optional[str] = Field(default=None, max_length=255)


class RoleUpdate(CamelModel):
    role: UserRole


# ── Password reset ────────────────────────────────────────────────────────────

class ForgotPasswordRequest(CamelModel):
    email: NormalizedEmail


class VerifyCodeRequest(CamelModel):
    email: NormalizedEmail
    code: str = Field(pattern=CODE_PATTERN)


class ResetPasswordRequest(CamelModel):
    email: NormalizedEmail
    code: str = Field(pattern=CODE_PATTERN)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH)
