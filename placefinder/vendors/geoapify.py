"""Client utilities for the Geoapify geocoding and places APIs."""

import logging
import threading
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from placefinder.core.config import get_settings

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.geoapify.com"
RESTAURANT_CATEGORIES = "catering.restaurant,catering.cafe,catering.fast_food,catering.bar,catering.pub"


def _build_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(
        total=2,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET",),
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    return session


_SESSION = _build_session()

_call_count = 0
_count_lock = threading.Lock()


class GeoapifyError(RuntimeError):
    """Raised when the provider returns a non-successful or unusable response."""


class PlaceNotFoundError(GeoapifyError):
    """Raised when place details come back without any feature."""


def get_call_count() -> int:
    return _call_count


def circle_filter(lat: float, lon: float, radius_meters: float) -> str:
    return f"circle:{lon},{lat},{int(radius_meters)}"


def proximity_bias(lat: float, lon: float) -> str:
    return f"proximity:{lon},{lat}"


def _request(path: str, params: Dict[str, Any]) -> Dict[str, Any]:
    global _call_count
    settings = get_settings()
    if not settings.geoapify_api_key:
        raise GeoapifyError("GEOAPIFY_API_KEY is not configured")

    with _count_lock:
        _call_count += 1
        count = _call_count
    logger.info("Geoapify call #%d: %s", count, path)

    query = {key: value for key, value in params.items() if value is not None}
    query["apiKey"] = settings.geoapify_api_key
    response = _SESSION.get(f"{_BASE_URL}{path}", params=query, timeout=settings.provider_timeout_seconds)
    if response.status_code >= 400:
        logger.error("Geoapify %s failed: status=%s body=%s", path, response.status_code, response.text[:300])
        raise GeoapifyError(f"Geoapify request failed with status {response.status_code}")
    try:
        payload = response.json()
    except ValueError as exc:
        raise GeoapifyError("Geoapify returned a non-JSON body") from exc
    if not isinstance(payload, dict):
        raise GeoapifyError("Geoapify returned an unexpected payload")
    return payload


def features(payload: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Return the usable features of a response; a missing list means zero results."""
    if not payload:
        return []
    items = payload.get("features")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict) and isinstance(item.get("properties"), dict)]


def geocode(
    text: str,
    *,
    type: Optional[str] = None,
    limit: Optional[int] = None,
    filter: Optional[str] = None,
    bias: Optional[str] = None,
) -> List[Dict[str, Any]]:
    if not text or not text.strip():
        raise ValueError("Text must be provided for geocoding")
    payload = _request(
        "/v1/geocode/search",
        {"text": text.strip(), "type": type, "limit": limit, "filter": filter, "bias": bias},
    )
    return features(payload)


def places(
    lat: float,
    lon: float,
    radius_meters: float,
    *,
    categories: str = RESTAURANT_CATEGORIES,
    limit: int = 20,
    bias: Optional[str] = None,
) -> List[Dict[str, Any]]:
    payload = _request(
        "/v2/places",
        {
            "categories": categories,
            "filter": circle_filter(lat, lon, radius_meters),
            "bias": bias or proximity_bias(lat, lon),
            "limit": limit,
        },
    )
    return features(payload)


def place_details(place_id: str) -> Dict[str, Any]:
    """Return the first details feature; zero features is an error for this call."""
    if not place_id:
        raise ValueError("place_id is required")
    found = features(_request("/v2/place-details", {"id": place_id}))
    if not found:
        raise PlaceNotFoundError("No details found for this place")
    return found[0]
