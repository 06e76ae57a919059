import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.geo import NearbyPage, PlaceCategory, SortBy
from app.services.nearby import DEFAULT_LIMIT, search_nearby
from app.services.places import GooglePlacesProvider, get_places_provider

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/geo", tags=["geo"])


@router.get("/nearby", response_model=NearbyPage)
async def nearby(
    latitude: float = Query(...),
    longitude: float = Query(...),
    query: Optional[str] = Query(None, description="Comma-separated search terms"),
    page: int = Query(1),
    limit: int = Query(DEFAULT_LIMIT),
    category: Optional[PlaceCategory] = Query(None, alias="type"),
    sort_by: Optional[SortBy] = Query(None, alias="sortBy"),
    db: AsyncSession = Depends(get_db),
    provider: GooglePlacesProvider = Depends(get_places_provider),
):
    """
    Support points around a coordinate.

    Range checks on coordinates and paging happen in the service so the
    error messages match the ones raised for cached searches.
    """
    return await search_nearby(
        db, provider, latitude, longitude,
        query=query, page=page, limit=limit,
        category=category, sort_by=sort_by,
    )


@router.get("/photo/{reference}")
async def photo(
    reference: str,
    max_width: int = Query(400, alias="maxWidth", ge=1, le=1600),
    provider: GooglePlacesProvider = Depends(get_places_provider),
):
    location = await provider.photo_redirect(reference, max_width=max_width)
    return RedirectResponse(location, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
