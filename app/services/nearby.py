"""
Nearby support-point search.

validate → round for cache key → cache or provider (single-flight) →
distance from the unrounded origin → type filter → sort → paginate.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError
from app.schemas.geo import NearbyPage, PlaceCategory, PointOfInterest, SortBy
from app.services import geo_cache
from app.services.places import GooglePlacesProvider
from app.utils.geo import haversine_km, round_coordinates
from app.utils.singleflight import SingleFlight

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TERMS = [
    "CRAS",
    "Clínicas de Psicologia",
    "Clínicas Psiquiátricas",
    "Centro de Apoio Psicossocial",
]
DEFAULT_LIMIT = 10
MAX_LIMIT = 50
NO_RESULTS_MESSAGE = "No support points found."

# Collapses concurrent cache misses for the same key into one provider call
_inflight = SingleFlight()


# ── Helpers ───────────────────────────────────────────────────────────────────

def validate_coordinates(latitude: float, longitude: float) -> None:
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise ValidationError("Invalid coordinates.")
    if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
        raise ValidationError("Invalid coordinates.")


def parse_query_terms(query: Optional[str]) -> List[str]:
    terms = geo_cache.normalize_terms((query or "").split(","))
    return terms or geo_cache.normalize_terms(DEFAULT_QUERY_TERMS)


def with_distances(
    points: Sequence[PointOfInterest],
    latitude: float,
    longitude: float,
) -> List[PointOfInterest]:
    return [
        p.model_copy(update={
            "distance": haversine_km(latitude, longitude, p.position.lat, p.position.lng),
        })
        for p in points
    ]


def sort_points(points: List[PointOfInterest], sort_by: Optional[SortBy]) -> List[PointOfInterest]:
    if sort_by == SortBy.distance:
        return sorted(points, key=lambda p: p.distance if p.distance is not None else math.inf)
    if sort_by == SortBy.rating:
        return sorted(points, key=lambda p: p.rating or 0.0, reverse=True)
    return points


def validate_paging(page: int, limit: int) -> None:
    if page < 1:
        raise ValidationError("page must be >= 1")
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")


def paginate(points: List[PointOfInterest], page: int, limit: int) -> NearbyPage:
    validate_paging(page, limit)
    total = len(points)
    start = (page - 1) * limit
    return NearbyPage(
        total_results=total,
        page=page,
        total_pages=math.ceil(total / limit),
        results=points[start:start + limit],
        message=NO_RESULTS_MESSAGE if total == 0 else None,
    )


async def _fetch_and_store(
    db: AsyncSession,
    provider: GooglePlacesProvider,
    latitude: float,
    longitude: float,
    rounded: Tuple[float, float],
    terms: List[str],
) -> List[PointOfInterest]:
    points = await provider.fetch_points(latitude, longitude, terms)
    await geo_cache.store(db, rounded, terms, points)
    return points


# ── Public interface ──────────────────────────────────────────────────────────

async def search_nearby(
    db: AsyncSession,
    provider: GooglePlacesProvider,
    latitude: float,
    longitude: float,
    query: Optional[str] = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    category: Optional[PlaceCategory] = None,
    sort_by: Optional[SortBy] = None,
) -> NearbyPage:
    validate_coordinates(latitude, longitude)
    validate_paging(page, limit)
    rounded = round_coordinates(latitude, longitude)
    terms = parse_query_terms(query)

    entry = await geo_cache.lookup(db, rounded, terms)
    if entry is not None:
        points = geo_cache.entry_points(entry)
    else:
        key = geo_cache.make_cache_key(rounded, terms)
        points = await _inflight.do(
            key,
            lambda: _fetch_and_store(db, provider, latitude, longitude, rounded, terms),
        )

    points = with_distances(points, latitude, longitude)
    if category is not None:
        points = [p for p in points if p.category == category]
    points = sort_points(points, sort_by)

    result = paginate(points, page, limit)
    logger.info(
        "Nearby (%.3f, %.3f) terms=%s → %d results, page %d/%d",
        rounded[0], rounded[1], terms, result.total_results, result.page, result.total_pages,
    )
    return result
