import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user
from app.db.session import get_db
from app.models.content import Article, ContentStatus, Video, VideoCategory
from app.models.user import User
from app.schemas.common import ListResponse
from app.schemas.content import ArticleRead, VideoRead
from app.services.cache import articles_cache, videos_cache

logger = logging.getLogger(__name__)
exercises_router = APIRouter(prefix="/exercises", tags=["content"])
educational_router = APIRouter(prefix="/educational", tags=["content"])


@exercises_router.get("/videos", response_model=ListResponse[VideoRead])
async def approved_videos(
    category: Optional[VideoCategory] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    cache_key = category.value if category else "all"
    cached = await videos_cache.get(cache_key)
    if cached is not None:
        return ListResponse[VideoRead](data=cached, message="Videos listed successfully.")

    stmt = select(Video).where(Video.status == ContentStatus.approved)
    if category:
        stmt = stmt.where(Video.category == category)
    result = await db.execute(stmt.order_by(Video.created_at.desc(), Video.id.desc()))
    videos = [VideoRead.model_validate(v) for v in result.scalars().all()]

    await videos_cache.set(cache_key, [v.model_dump(mode="json") for v in videos])
    return ListResponse[VideoRead](data=videos, message="Videos listed successfully.")


@educational_router.get("/articles", response_model=ListResponse[ArticleRead])
async def approved_articles(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_user),
):
    cached = await articles_cache.get("all")
    if cached is not None:
        return ListResponse[ArticleRead](data=cached, message="Articles listed successfully.")

    result = await db.execute(
        select(Article)
        .where(Article.status == ContentStatus.approved)
        .order_by(Article.created_at.desc(), Article.id.desc())
    )
    articles = [ArticleRead.model_validate(a) for a in result.scalars().all()]

    await articles_cache.set("all", [a.model_dump(mode="json") for a in articles])
    return ListResponse[ArticleRead](data=articles, message="Articles listed successfully.")
