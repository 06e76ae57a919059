from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_moderator
from app.db.session import get_db
from app.models.user import User
from app.schemas.content import ImportResult
from app.services.content_feeds import fetch_news_articles, fetch_youtube_videos

router = APIRouter(prefix="/automate", tags=["automation"])


@router.post("/videos", response_model=ImportResult)
async def import_videos(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_moderator),
):
    imported = await fetch_youtube_videos(db)
    return ImportResult(msg="Video import finished.", imported=imported)


@router.post("/articles", response_model=ImportResult)
async def import_articles(
    db: AsyncSession = Depends(get_db),
    _: User = Depends(get_current_moderator),
):
    imported = await fetch_news_articles(db)
    return ImportResult(msg="Article import finished.", imported=imported)
