"""
Pull educational content from YouTube and NewsAPI into the moderation queue.

Everything imported lands as ``pending``; items without title/URL and URLs
already stored are skipped.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.errors import ProviderUnavailable
from app.models.content import Article, ContentStatus, Video

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
NEWS_API_URL = "https://newsapi.org/v2/everything"


async def _get_json(url: str, params: dict, transport: Optional[httpx.AsyncBaseTransport]) -> dict:
    try:
        async with httpx.AsyncClient(timeout=15.0, transport=transport) as client:
            resp = await client.get(url, params=params)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("Content feed request to %s failed: %s", url, exc)
        raise ProviderUnavailable("Content provider unavailable.") from exc


async def _existing_urls(db: AsyncSession, model, urls: Iterable[str]) -> Set[str]:
    urls = [u for u in urls if u]
    if not urls:
        return set()
    result = await db.execute(select(model.url).where(model.url.in_(urls)))
    return set(result.scalars().all())


# ── YouTube ───────────────────────────────────────────────────────────────────

def _video_from_item(item: dict) -> Optional[Video]:
    video_id = (item.get("id") or {}).get("videoId")
    snippet = item.get("snippet") or {}
    if not video_id or not snippet.get("title"):
        return None
    thumbnails = snippet.get("thumbnails") or {}
    return Video(
        title=snippet["title"],
        description=snippet.get("description"),
        url=f"https://www.youtube.com/watch?v={video_id}",
        thumbnail=(thumbnails.get("default") or {}).get("url"),
        channel_name=snippet.get("channelTitle"),
        status=ContentStatus.pending,
    )


async def fetch_youtube_videos(
    db: AsyncSession,
    max_results: int = 5,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    data = await _get_json(
        YOUTUBE_SEARCH_URL,
        {
            "part": "snippet",
            "q": settings.YOUTUBE_SEARCH_QUERY,
            "type": "video",
            "maxResults": max_results,
            "key": settings.YOUTUBE_API_KEY,
        },
        transport,
    )
    videos: List[Video] = [v for v in map(_video_from_item, data.get("items") or []) if v]
    known = await _existing_urls(db, Video, [v.url for v in videos])
    fresh = {v.url: v for v in videos if v.url not in known}
    db.add_all(fresh.values())
    await db.commit()
    logger.info("YouTube import: %d fetched, %d new", len(videos), len(fresh))
    return len(fresh)


# ── NewsAPI ───────────────────────────────────────────────────────────────────

def _article_from_item(item: dict) -> Optional[Article]:
    if not item.get("title") or not item.get("url"):
        logger.warning("Skipping article without title or URL: %s", str(item)[:120])
        return None
    return Article(
        title=item["title"],
        description=item.get("description") or "Description unavailable",
        content=item.get("content") or "Content unavailable",
        author=item.get("author") or "Unknown author",
        url=item["url"],
        source=(item.get("source") or {}).get("name") or "Unknown source",
        status=ContentStatus.pending,
    )


async def fetch_news_articles(
    db: AsyncSession,
    page_size: int = 10,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    data = await _get_json(
        NEWS_API_URL,
        {
            "q": settings.NEWS_SEARCH_QUERY,
            "language": "pt",
            "sortBy": "relevancy",
            "pageSize": page_size,
            "apiKey": settings.NEWS_API_KEY,
        },
        transport,
    )
    articles: List[Article] = [a for a in map(_article_from_item, data.get("articles") or []) if a]
    known = await _existing_urls(db, Article, [a.url for a in articles])
    fresh = {a.url: a for a in articles if a.url not in known}
    db.add_all(fresh.values())
    await db.commit()
    logger.info("NewsAPI import: %d fetched, %d new", len(articles), len(fresh))
    return len(fresh)
