from math import asin, cos, radians, sin, sqrt
from typing import Optional, Tuple

from app.core.config import settings

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance between two points given in decimal degrees.

    Inputs are assumed finite; callers validate ranges beforehand.
    """
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    a = sin(dlat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(dlon / 2) ** 2
    return EARTH_RADIUS_KM * 2 * asin(sqrt(min(1.0, a)))


def round_coordinate(value: float, precision: Optional[int] = None) -> float:
    """Round to the cache grid (3dp ≈ 110m) so nearby queries share entries."""
    if precision is None:
        precision = settings.GEO_CACHE_PRECISION
    return round(value, precision)


def round_coordinates(
    lat: float,
    lng: float,
    precision: Optional[int] = None,
) -> Tuple[float, float]:
    return round_coordinate(lat, precision), round_coordinate(lng, precision)
