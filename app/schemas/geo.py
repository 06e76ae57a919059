from __future__ import annotations

import enum
from typing import List, Optional

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class PlaceCategory(str, enum.Enum):
    public = "public"
    private = "private"


class SortBy(str, enum.Enum):
    distance = "distance"
    rating = "rating"


class Position(BaseModel):
    lat: float
    lng: float


class OpeningHours(CamelModel):
    text: List[str] = Field(default_factory=list)
    open_now: Optional[bool] = None


class Photo(BaseModel):
    url: str
    attributions: List[str] = Field(default_factory=list)


class PointOfInterest(CamelModel):
    id: str
    title: str = "Support point"
    position: Position
    address: str = "Address not available"
    category: PlaceCategory = PlaceCategory.private
    rating: Optional[float] = None
    opening_hours: Optional[OpeningHours] = None
    photos: List[Photo] = Field(default_factory=list)
    distance: Optional[float] = None


class NearbyPage(CamelModel):
    total_results: int
    page: int
    total_pages: int
    results: List[PointOfInterest]
    message: Optional[str] = None
