import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import EmailStr
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_admin, get_current_user
from app.core.errors import AppError, NotFound, Unauthorized, ValidationError
from app.core.security import (
    REFRESH, create_access_token, create_refresh_token,
    hash_password, token_user_id, verify_password,
)
from app.db.session import get_db
from app.models.user import User, UserRole
from app.schemas.auth import (
    MIN_PASSWORD_LENGTH,
    AuthResponse, CustomEmojisUpdate, DeviceTokenUpdate,
    ForgotPasswordRequest, LoginRequest, ProfileUpdateResponse,
    RefreshRequest, ResetPasswordRequest, RoleUpdate,
    TokenCheck, TokenResponse, UserRead, VerifyCodeRequest,
)
from app.schemas.common import MessageResponse
from app.services import password_reset
from app.services.image_storage import CloudinaryStorage, get_image_storage
from app.services.mailer import SendGridMailer, get_mailer
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

PHONE_PATTERN = r"^\+?[0-9 ()\-]{8,20}$"
FORGOT_PASSWORD_MESSAGE = "If the email is registered, a verification code will be sent."


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Email already registered"


# ── Private helpers ───────────────────────────────────────────────────────────

async def _user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def _upload(storage: CloudinaryStorage, image: Optional[UploadFile]) -> Optional[str]:
    if image is None or not image.filename:
        return None
    return await storage.upload_image(await image.read(), image.filename)


def _auth_response(user: User, msg: str) -> AuthResponse:
    return AuthResponse(
        msg=msg,
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=create_refresh_token(user.id, user.role.value),
        user=UserRead.model_validate(user),
    )


# ── Registration & login ──────────────────────────────────────────────────────

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    name: str = Form(..., min_length=1, max_length=120),
    email: EmailStr = Form(...),
    password: str = Form(..., min_length=MIN_PASSWORD_LENGTH),
    password_confirmation: str = Form(..., alias="passwordConfirmation"),
    phone: str = Form(..., pattern=PHONE_PATTERN),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: CloudinaryStorage = Depends(get_image_storage),
):
    if password != password_confirmation:
        raise ValidationError("Password confirmation does not match password")
    if await _user_by_email(db, email):
        raise Conflict()

    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        hashed_password=hash_password(password),
        phone=phone,
        role=UserRole.user,
        custom_emojis=[],
    )
    user.photo_url = await _upload(storage, image)
    db.add(user)
    try:
        await db.commit()
        await db.refresh(user)
    except IntegrityError:
        await db.rollback()
        raise Conflict()
    logger.info("User registered id=%d", user.id)
    return _auth_response(user, "User registered successfully.")


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, db: AsyncSession = Depends(get_db)):
    user = await _user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.hashed_password):
        raise Unauthorized("Invalid credentials")
    if not user.is_active:
        raise Unauthorized("Account disabled")
    return _auth_response(user, "Login successful")


@router.post("/refresh", response_model=TokenResponse)
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)):
    user_id = token_user_id(payload.refresh_token, REFRESH)
    if user_id is None:
        raise Unauthorized("Invalid refresh token")
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise Unauthorized("User not found")
    return TokenResponse(
        access_token=create_access_token(user.id, user.role.value),
        refresh_token=create_refresh_token(user.id, user.role.value),
    )


@router.get("/validate-token", response_model=TokenCheck)
async def validate_token(user: User = Depends(get_current_user)):
    return TokenCheck(user=UserRead.model_validate(user))


# ── Profile ───────────────────────────────────────────────────────────────────

@router.get("/profile", response_model=UserRead)
async def profile(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=ProfileUpdateResponse)
async def update_profile(
    name: Optional[str] = Form(None, max_length=120),
    bio: Optional[str] = Form(None),
    phone: Optional[str] = Form(None, pattern=PHONE_PATTERN),
    email: Optional[EmailStr] = Form(None),
    password: Optional[str] = Form(None),
    new_password: Optional[str] = Form(None, alias="newPassword", min_length=MIN_PASSWORD_LENGTH),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: CloudinaryStorage = Depends(get_image_storage),
    current_user: User = Depends(get_current_user),
):
    """Update only the fields that were sent."""
    if name:
        current_user.name = name.strip()
    if bio:
        current_user.bio = bio
    if phone:
        current_user.phone = phone

    if email and email.lower() != current_user.email:
        if await _user_by_email(db, email):
            raise Conflict("This email is already in use.")
        current_user.email = email.lower()

    if password and new_password:
        if not verify_password(password, current_user.hashed_password):
            raise ValidationError("Current password is incorrect")
        current_user.hashed_password = hash_password(new_password)

    photo_url = await _upload(storage, image)
    if photo_url:
        current_user.photo_url = photo_url

    try:
        await db.commit()
        await db.refresh(current_user)
    except IntegrityError:
        await db.rollback()
        raise Conflict("This email is already in use.")
    return ProfileUpdateResponse(
        msg="Profile updated successfully",
        photo_url=current_user.photo_url,
        user=UserRead.model_validate(current_user),
    )


@router.put("/profile/emojis", response_model=UserRead)
async def update_custom_emojis(
    payload: CustomEmojisUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.custom_emojis = list(payload.custom_emojis)
    await db.commit()
    await db.refresh(current_user)
    return current_user


@router.put("/profile/deviceToken", response_model=MessageResponse)
async def update_device_token(
    payload: DeviceTokenUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.device_token = payload.device_token
    await db.commit()
    return MessageResponse(msg="Device token updated.")


@router.post("/upload", response_model=ProfileUpdateResponse)
async def upload_photo(
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    storage: CloudinaryStorage = Depends(get_image_storage),
    current_user: User = Depends(get_current_user),
):
    photo_url = await _upload(storage, image)
    if not photo_url:
        raise ValidationError("No image was sent.")
    current_user.photo_url = photo_url
    await db.commit()
    await db.refresh(current_user)
    return ProfileUpdateResponse(
        msg="Profile photo updated successfully.",
        photo_url=photo_url,
        user=UserRead.model_validate(current_user),
    )


@router.delete("/account", response_model=MessageResponse)
async def delete_account(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Deactivate now; the cleanup job deletes the data after the grace period."""
    current_user.is_active = False
    current_user.deletion_requested_at = utcnow()
    await db.commit()
    logger.info("Account deletion scheduled user=%d", current_user.id)
    return MessageResponse(msg="Account scheduled for deletion.")


@router.patch("/users/{user_id}/role", response_model=UserRead)
async def change_role(
    user_id: int,
    payload: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFound("User not found")
    user.role = payload.role
    await db.commit()
    await db.refresh(user)
    return user


# ── Password reset ────────────────────────────────────────────────────────────

@router.post("/forgotPassword", response_model=MessageResponse)
async def forgot_password(
    payload: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
    mailer: SendGridMailer = Depends(get_mailer),
):
    """Same answer whether or not the account exists."""
    user = await _user_by_email(db, payload.email)
    if user and user.is_active:
        code = await password_reset.request_code(db, user)
        await mailer.send_password_reset(user.email, code)
    return MessageResponse(msg=FORGOT_PASSWORD_MESSAGE)


@router.post("/verifyCode", response_model=MessageResponse)
async def verify_code(payload: VerifyCodeRequest, db: AsyncSession = Depends(get_db)):
    user = await _user_by_email(db, payload.email)
    if not user:
        # Unknown accounts get the same answer as an expired or wrong code
        raise ValidationError(password_reset.INVALID_MESSAGE)
    outcome = await password_reset.verify_code(db, user, payload.code)
    password_reset.raise_for_outcome(outcome)
    return MessageResponse(msg="Code verified. You can reset your password now.")


@router.post("/resetPassword", response_model=MessageResponse)
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    user = await _user_by_email(db, payload.email)
    if not user:
        raise ValidationError(password_reset.INVALID_MESSAGE)
    outcome = await password_reset.complete_reset(db, user, payload.code, payload.new_password)
    password_reset.raise_for_outcome(outcome)
    return MessageResponse(msg="Password reset successfully.")
