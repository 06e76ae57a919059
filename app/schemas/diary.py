import enum
from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class DiaryFilter(str, enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class DiaryEntryCreate(CamelModel):
    mood_emoji: str = Field(min_length=1, max_length=16)
    entry: str = Field(min_length=1)


class DiaryEntryRead(CamelModel):
    id: int
    user_id: int
    mood_emoji: str
    entry: str
    created_at: datetime
