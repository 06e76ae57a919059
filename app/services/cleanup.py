"""
Periodic batch cleanup.

- users whose deletion grace period has passed, with everything they own
- rejected videos/articles older than their grace period
- expired geo-cache rows
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Dict, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import async_session_maker
from app.models.content import Article, ContentStatus, Video
from app.models.diary_entry import DiaryEntry
from app.models.gamification import Progress
from app.models.notification import Notification
from app.models.post import Post, PostComment, PostLike
from app.models.user import User
from app.services import geo_cache
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

# Batch deletes; the session is not synchronized with the removed rows
BULK = {"synchronize_session": False}


async def purge_deleted_users(db: AsyncSession, now: datetime) -> int:
    cutoff = now - timedelta(days=settings.ACCOUNT_DELETION_GRACE_DAYS)
    result = await db.execute(
        select(User.id).where(
            User.deletion_requested_at.is_not(None),
            User.deletion_requested_at <= cutoff,
        )
    )
    user_ids = list(result.scalars().all())
    if not user_ids:
        return 0

    post_ids = select(Post.id).where(Post.user_id.in_(user_ids))
    await db.execute(delete(PostLike).where(
        or_(PostLike.user_id.in_(user_ids), PostLike.post_id.in_(post_ids))
    ), execution_options=BULK)
    await db.execute(delete(PostComment).where(
        or_(PostComment.user_id.in_(user_ids), PostComment.post_id.in_(post_ids))
    ), execution_options=BULK)
    await db.execute(delete(Post).where(Post.user_id.in_(user_ids)), execution_options=BULK)
    for model in (DiaryEntry, Progress, Notification):
        await db.execute(delete(model).where(model.user_id.in_(user_ids)), execution_options=BULK)
    await db.execute(delete(User).where(User.id.in_(user_ids)), execution_options=BULK)
    await db.commit()
    logger.info("Purged %d deleted accounts", len(user_ids))
    return len(user_ids)


async def purge_rejected_content(db: AsyncSession, now: datetime) -> int:
    cutoff = now - timedelta(days=settings.REJECTED_CONTENT_GRACE_DAYS)
    removed = 0
    for model in (Video, Article):
        result = await db.execute(
            delete(model).where(
                model.status == ContentStatus.rejected,
                model.reviewed_at.is_not(None),
                model.reviewed_at <= cutoff,
            ),
            execution_options=BULK,
        )
        removed += result.rowcount or 0
    await db.commit()
    return removed


async def run_cleanup(db: AsyncSession, now: Optional[datetime] = None) -> Dict[str, int]:
    now = now or utcnow()
    report = {
        "users": await purge_deleted_users(db, now),
        "content": await purge_rejected_content(db, now),
        "geo_cache": await geo_cache.purge_expired(db, now),
    }
    logger.info("Cleanup finished: %s", report)
    return report


async def cleanup_loop(interval_hours: Optional[int] = None) -> None:
    """Run forever; started from the app lifespan and cancelled on shutdown."""
    interval = (interval_hours or settings.CLEANUP_INTERVAL_HOURS) * 3600
    while True:
        try:
            async with async_session_maker() as db:
                await run_cleanup(db)
        except Exception:
            logger.exception("Cleanup run failed")
        await asyncio.sleep(interval)
