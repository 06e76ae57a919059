"""
Google Places adapter: (coordinates, query terms) → normalized PointOfInterest list.

One text search per term; results are concatenated and de-duplicated by
place id. Any failed term aborts the whole fetch with ProviderUnavailable.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from app.core.config import settings
from app.core.errors import NotFound, ProviderUnavailable
from app.schemas.geo import (
    OpeningHours,
    Photo,
    PlaceCategory,
    PointOfInterest,
    Position,
)

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

# Provider type tags that mark a place as a public health service
_PUBLIC_TAGS = {"health", "health-care", "health_care"}
_OK_STATUSES = {"OK", "ZERO_RESULTS"}


# ── Normalization ─────────────────────────────────────────────────────────────

def _category(types: Sequence[str]) -> PlaceCategory:
    if any(t in _PUBLIC_TAGS for t in types):
        return PlaceCategory.public
    return PlaceCategory.private


def _photo_path(reference: str) -> str:
    # Served through /geo/photo so the provider key never reaches clients
    return f"/api/v1/geo/photo/{reference}"


def normalize_place(item: Dict[str, Any]) -> PointOfInterest:
    location = item["geometry"]["location"]
    hours = item.get("opening_hours")
    rating = item.get("rating")
    return PointOfInterest(
        id=str(item["place_id"]),
        title=item.get("name") or "Support point",
        position=Position(lat=float(location["lat"]), lng=float(location["lng"])),
        address=item.get("formatted_address") or item.get("vicinity") or "Address not available",
        category=_category(item.get("types") or []),
        rating=float(rating) if rating is not None else None,
        opening_hours=OpeningHours(
            text=list(hours.get("weekday_text") or []),
            open_now=hours.get("open_now"),
        ) if hours else None,
        photos=[
            Photo(url=_photo_path(p["photo_reference"]), attributions=list(p.get("html_attributions") or []))
            for p in item.get("photos") or []
            if p.get("photo_reference")
        ],
    )


# ── Provider ──────────────────────────────────────────────────────────────────

class GooglePlacesProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        radius_m: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GOOGLE_PLACES_API_KEY
        self.radius_m = radius_m or settings.PLACES_SEARCH_RADIUS_M
        self.timeout = timeout or settings.PLACES_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _search(self, client: httpx.AsyncClient, lat: float, lng: float, term: str) -> List[dict]:
        try:
            resp = await client.get(
                TEXT_SEARCH_URL,
                params={
                    "query": term,
                    "location": f"{lat},{lng}",
                    "radius": self.radius_m,
                    "key": self.api_key,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Places search failed for %r: %s", term, exc)
            raise ProviderUnavailable("Error fetching external support points.") from exc

        status = data.get("status") if isinstance(data, dict) else None
        if status not in _OK_STATUSES:
            logger.error("Places search for %r returned status %s", term, status)
            raise ProviderUnavailable("Error fetching external support points.")
        return data.get("results") or []

    async def fetch_points(
        self,
        latitude: float,
        longitude: float,
        query_terms: Sequence[str],
    ) -> List[PointOfInterest]:
        points: List[PointOfInterest] = []
        seen = set()
        async with self._client() as client:
            for term in query_terms:
                for item in await self._search(client, latitude, longitude, term):
                    try:
                        point = normalize_place(item)
                    except (KeyError, TypeError, ValueError) as exc:
                        logger.error("Malformed place in results for %r: %s", term, exc)
                        raise ProviderUnavailable("Error fetching external support points.") from exc
                    if point.id in seen:
                        continue
                    seen.add(point.id)
                    points.append(point)
        logger.info(
            "Places fetch (%.4f, %.4f) terms=%d → %d points",
            latitude, longitude, len(query_terms), len(points),
        )
        return points

    async def photo_redirect(self, reference: str, max_width: int = 400) -> str:
        """Resolve a photo reference to the public image URL the provider redirects to."""
        async with self._client() as client:
            try:
                resp = await client.get(
                    PHOTO_URL,
                    params={"maxwidth": max_width, "photo_reference": reference, "key": self.api_key},
                    follow_redirects=False,
                )
            except httpx.HTTPError as exc:
                logger.error("Places photo lookup failed: %s", exc)
                raise ProviderUnavailable() from exc
        location = resp.headers.get("location")
        if resp.is_redirect and location:
            return location
        if resp.status_code in (400, 404):
            raise NotFound("Photo not found")
        raise ProviderUnavailable()


# ── FastAPI dependency ────────────────────────────────────────────────────────

_provider: Optional[GooglePlacesProvider] = None


def get_places_provider() -> GooglePlacesProvider:
    global _provider
    if _provider is None:
        _provider = GooglePlacesProvider()
    return _provider
