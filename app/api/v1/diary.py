from datetime import datetime, timedelta
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.db.session import get_db
from app.models.diary_entry import DiaryEntry
from app.models.user import User
from app.schemas.diary import DiaryEntryCreate, DiaryEntryRead, DiaryFilter
from app.utils.timeutils import utcnow

router = APIRouter(prefix="/diary", tags=["diary"])


def period_start(filter_: DiaryFilter, now: datetime) -> datetime:
    """Start of the current day, week (Sunday) or month in UTC."""
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if filter_ == DiaryFilter.daily:
        return day
    if filter_ == DiaryFilter.weekly:
        # weekday(): Monday=0 … Sunday=6
        return day - timedelta(days=(day.weekday() + 1) % 7)
    return day.replace(day=1)


@router.post("/createEntry", response_model=DiaryEntryRead, status_code=status.HTTP_201_CREATED)
async def create_entry(
    payload: DiaryEntryCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = DiaryEntry(
        user_id=current_user.id,
        mood_emoji=payload.mood_emoji,
        entry=payload.entry,
    )
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


@router.get("/entries", response_model=List[DiaryEntryRead])
async def list_entries(
    filter_: DiaryFilter = Query(DiaryFilter.daily, alias="filter"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    since = period_start(filter_, utcnow())
    result = await db.execute(
        select(DiaryEntry)
        .where(DiaryEntry.user_id == current_user.id, DiaryEntry.created_at >= since)
        .order_by(DiaryEntry.created_at.desc(), DiaryEntry.id.desc())
    )
    return result.scalars().all()
