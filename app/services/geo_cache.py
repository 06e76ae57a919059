"""
Database-backed cache of places-provider results.

Key: rounded (lat, lng) + normalized query terms. Entries are write-once and
expire passively after GEO_CACHE_TTL_HOURS.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.geo_cache import GeoCacheEntry
from app.schemas.geo import PointOfInterest
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


# ── Key helpers ───────────────────────────────────────────────────────────────

def normalize_terms(terms: Iterable[str]) -> List[str]:
    """Trim, drop blanks, de-duplicate and sort so term order never splits the cache."""
    return sorted({t.strip() for t in terms if t and t.strip()})


def make_cache_key(coords: Tuple[float, float], terms: Iterable[str]) -> str:
    lat, lng = coords
    return f"{lat:.{settings.GEO_CACHE_PRECISION}f},{lng:.{settings.GEO_CACHE_PRECISION}f}|" + "|".join(
        normalize_terms(terms)
    )


def _ttl() -> timedelta:
    return timedelta(hours=settings.GEO_CACHE_TTL_HOURS)


def entry_points(entry: GeoCacheEntry) -> List[PointOfInterest]:
    return [PointOfInterest.model_validate(r) for r in entry.results or []]


# ── Public interface ──────────────────────────────────────────────────────────

async def lookup(
    db: AsyncSession,
    coords: Tuple[float, float],
    terms: Iterable[str],
) -> Optional[GeoCacheEntry]:
    """Newest unexpired entry for the exact key, or None on a miss."""
    key = make_cache_key(coords, terms)
    cutoff = utcnow() - _ttl()
    result = await db.execute(
        select(GeoCacheEntry)
        .where(GeoCacheEntry.cache_key == key)
        .order_by(GeoCacheEntry.created_at.desc())
        .limit(1)
    )
    entry = result.scalar_one_or_none()
    if entry is None or as_utc(entry.created_at) <= cutoff:
        logger.debug("[geo_cache] MISS %s", key[:60])
        return None
    logger.debug("[geo_cache] HIT  %s", key[:60])
    return entry


async def store(
    db: AsyncSession,
    coords: Tuple[float, float],
    terms: Iterable[str],
    results: Sequence[PointOfInterest],
) -> Optional[GeoCacheEntry]:
    """
    Persist a new entry. Never raises: a failed write only costs a future
    cache hit, the caller still has its provider results.
    """
    normalized = normalize_terms(terms)
    entry = GeoCacheEntry(
        cache_key=make_cache_key(coords, normalized),
        latitude=coords[0],
        longitude=coords[1],
        queries=normalized,
        results=[p.model_dump(mode="json", exclude={"distance"}) for p in results],
        created_at=utcnow(),
    )
    try:
        db.add(entry)
        await db.commit()
    except Exception as exc:
        logger.warning("[geo_cache] store failed for %s: %s", entry.cache_key[:60], exc)
        try:
            await db.rollback()
        except Exception as rollback_exc:
            logger.warning("[geo_cache] rollback failed: %s", rollback_exc)
        return None
    return entry


async def purge_expired(db: AsyncSession, now: Optional[datetime] = None) -> int:
    cutoff = (now or utcnow()) - _ttl()
    result = await db.execute(
        delete(GeoCacheEntry).where(GeoCacheEntry.created_at <= cutoff),
        execution_options={"synchronize_session": False},
    )
    await db.commit()
    return result.rowcount or 0
