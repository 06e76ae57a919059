from typing import Optional

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class SupportMessage(CamelModel):
    name: Optional[str] = Field(default=None, max_length=120)
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(min_length=1, max_length=5000)
