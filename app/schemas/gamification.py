from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class ProgressRead(CamelModel):
    user_id: int
    tasks_completed: List[str]
    points: int
    last_updated: datetime


class ProgressUpdate(CamelModel):
    task_completed: str = Field(min_length=1, max_length=255)
    points_earned: int = Field(ge=0)


class RewardRead(CamelModel):
    id: int
    description: str
    points_required: int


class ClaimReward(CamelModel):
    reward_id: int


class ChallengeCreate(CamelModel):
    description: str = Field(min_length=1, max_length=500)
    points: int = Field(ge=0)
    condition: str = Field(min_length=1, max_length=255)
    icon: Optional[str] = None


class ChallengeRead(ChallengeCreate):
    id: int
