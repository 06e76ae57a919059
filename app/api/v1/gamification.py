from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_moderator, get_current_user
from app.core.errors import NotFound, ValidationError
from app.db.session import get_db
from app.models.gamification import Challenge, Progress, Reward
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.gamification import (
    ChallengeCreate, ChallengeRead, ClaimReward,
    ProgressRead, ProgressUpdate, RewardRead,
)
from app.utils.timeutils import utcnow

router = APIRouter(prefix="/gamification", tags=["gamification"])
challenges_router = APIRouter(prefix="/challenges", tags=["gamification"])


async def _progress_for(db: AsyncSession, user_id: int):
    result = await db.execute(select(Progress).where(Progress.user_id == user_id))
    return result.scalar_one_or_none()


@router.get("/progress", response_model=ProgressRead)
async def get_progress(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    progress = await _progress_for(db, current_user.id)
    if not progress:
        raise NotFound("Progress not found.")
    return progress


@router.post("/updateProgress", response_model=ProgressRead)
async def update_progress(
    payload: ProgressUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    progress = await _progress_for(db, current_user.id)
    if not progress:
        progress = Progress(user_id=current_user.id, tasks_completed=[], points=0)
        db.add(progress)
    # Reassign so the JSON column is flagged dirty
    progress.tasks_completed = [*progress.tasks_completed, payload.task_completed]
    progress.points += payload.points_earned
    progress.last_updated = utcnow()
    await db.commit()
    await db.refresh(progress)
    return progress


@router.get("/rewards", response_model=List[RewardRead])
async def list_rewards(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    result = await db.execute(select(Reward).order_by(Reward.points_required, Reward.id))
    return result.scalars().all()


@router.post("/claimReward", response_model=MessageResponse)
async def claim_reward(
    payload: ClaimReward,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    reward = await db.get(Reward, payload.reward_id)
    if not reward:
        raise NotFound("Reward not found.")
    # Balance check and debit in one statement: concurrent claims see the
    # committed balance.
    stmt = (
        update(Progress)
        .where(
            Progress.user_id == current_user.id,
            Progress.points >= reward.points_required,
        )
        .values(points=Progress.points - reward.points_required, last_updated=utcnow())
        .returning(Progress.points)
        .execution_options(synchronize_session=False)
    )
    remaining = (await db.execute(stmt)).scalar_one_or_none()
    if remaining is None:
        raise ValidationError("Not enough points to claim this reward.")
    await db.commit()
    return MessageResponse(msg="Reward claimed successfully!")


# ── Challenges ────────────────────────────────────────────────────────────────

@challenges_router.get("", response_model=List[ChallengeRead])
async def list_challenges(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    result = await db.execute(select(Challenge).order_by(Challenge.id))
    return result.scalars().all()


@challenges_router.post("", response_model=ChallengeRead, status_code=201)
async def create_challenge(
    payload: ChallengeCreate,
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_moderator),
):
    challenge = Challenge(**payload.model_dump())
    db.add(challenge)
    await db.commit()
    await db.refresh(challenge)
    return challenge
