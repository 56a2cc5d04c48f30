"""Great-circle distance helpers."""

import math
from typing import Optional

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_MILES = 3959.0
METERS_PER_MILE = 1609.34


def _haversine(lat1: float, lon1: float, lat2: float, lon2: float, radius: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return _haversine(lat1, lon1, lat2, lon2, EARTH_RADIUS_KM)


def distance_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return _haversine(lat1, lon1, lat2, lon2, EARTH_RADIUS_MILES)


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def format_distance_miles(distance: Optional[float]) -> str:
    """Readable distance, e.g. "300 ft", "1.4 mi" or "12 mi"."""
    if distance is None:
        return ""
    if distance < 0.2:
        return f"{round(distance * 5280)} ft"
    if distance < 10:
        return f"{distance:.1f} mi"
    return f"{round(distance)} mi"
