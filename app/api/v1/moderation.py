"""
Moderation queue for imported educational content.

Approving or rejecting anything invalidates the cached public lists.
"""
import logging
import math
from typing import Type, TypeVar

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_moderator
from app.core.errors import NotFound
from app.db.session import get_db
from app.models.content import Article, ContentStatus, Video
from app.models.user import User
from app.schemas.common import MessageResponse, Page, Pagination
from app.schemas.content import ArticleRead, VideoApprove, VideoRead
from app.services.cache import articles_cache, videos_cache
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/moderation", tags=["moderation"])

M = TypeVar("M", Video, Article)


async def _pending_page(db: AsyncSession, model, page: int, limit: int):
    pending = model.status == ContentStatus.pending
    total = (await db.execute(select(func.count(model.id)).where(pending))).scalar_one()
    result = await db.execute(
        select(model)
        .where(pending)
        .order_by(model.created_at.desc(), model.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    pagination = Pagination(
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_items=total,
    )
    return result.scalars().all(), pagination


async def _review(db: AsyncSession, model: Type[M], item_id: int, status: ContentStatus) -> M:
    item = await db.get(model, item_id)
    if not item:
        raise NotFound(f"{model.__name__} not found.")
    item.status = status
    item.reviewed_at = utcnow()
    return item


async def _finish_review(db: AsyncSession, item, moderator: User) -> None:
    await db.commit()
    cache = videos_cache if isinstance(item, Video) else articles_cache
    await cache.clear()
    logger.info(
        "%s %d marked %s by user %d",
        type(item).__name__, item.id, item.status.value, moderator.id,
    )


# ── Videos ────────────────────────────────────────────────────────────────────

@router.get("/videos", response_model=Page[VideoRead])
async def pending_videos(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_moderator),
):
    items, pagination = await _pending_page(db, Video, page, limit)
    return Page[VideoRead](
        data=[VideoRead.model_validate(v) for v in items],
        message="Pending videos listed successfully.",
        pagination=pagination,
    )


@router.post("/videos/{video_id}/approve", response_model=MessageResponse)
async def approve_video(
    video_id: int,
    payload: VideoApprove,
    db: AsyncSession = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    video = await _review(db, Video, video_id, ContentStatus.approved)
    video.category = payload.category
    await _finish_review(db, video, moderator)
    return MessageResponse(msg="Video approved successfully!")


@router.post("/videos/{video_id}/reject", response_model=MessageResponse)
async def reject_video(
    video_id: int,
    db: AsyncSession = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    video = await _review(db, Video, video_id, ContentStatus.rejected)
    await _finish_review(db, video, moderator)
    return MessageResponse(msg="Video rejected successfully!")


# ── Articles ──────────────────────────────────────────────────────────────────

@router.get("/articles", response_model=Page[ArticleRead])
async def pending_articles(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_moderator),
):
    items, pagination = await _pending_page(db, Article, page, limit)
    return Page[ArticleRead](
        data=[ArticleRead.model_validate(a) for a in items],
        message="Pending articles listed successfully.",
        pagination=pagination,
    )


@router.post("/articles/{article_id}/approve", response_model=MessageResponse)
async def approve_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    article = await _review(db, Article, article_id, ContentStatus.approved)
    await _finish_review(db, article, moderator)
    return MessageResponse(msg="Article approved successfully!")


@router.post("/articles/{article_id}/reject", response_model=MessageResponse)
async def reject_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    moderator: User = Depends(get_current_moderator),
):
    article = await _review(db, Article, article_id, ContentStatus.rejected)
    await _finish_review(db, article, moderator)
    return MessageResponse(msg="Article rejected successfully!")
