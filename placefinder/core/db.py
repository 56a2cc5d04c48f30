"""Read access to the local restaurants table."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool

from placefinder.core.config import get_settings
from placefinder.models import PlaceCandidate, StoreId

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


class StoreError(RuntimeError):
    """Raised when the restaurants table cannot be read."""


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise StoreError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SELECT_RESTAURANTS = """
SELECT
    id,
    name,
    address,
    full_address,
    city,
    state,
    zip_code,
    country,
    latitude,
    longitude,
    geoapify_place_id,
    phone,
    website_url,
    category
FROM restaurants
"""

_SELECT_BY_PLACE_ID = _SELECT_RESTAURANTS + "WHERE geoapify_place_id = %(place_id)s\n"


def _fetch_rows(sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    try:
        with get_connection() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
                cur.execute(sql, params or {})
                return [dict(row) for row in cur.fetchall()]
    except psycopg2.Error as exc:
        logger.error("Restaurant store query failed: %s", exc)
        raise StoreError(f"restaurant store query failed: {exc}") from exc


def _to_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def row_to_candidate(row: Dict[str, Any]) -> Optional[PlaceCandidate]:
    """Convert a restaurants row into a store-sourced candidate, or None when unusable."""
    row_id = row.get("id")
    name = (row.get("name") or "").strip()
    if not row_id or not name:
        return None

    return PlaceCandidate(
        identity=StoreId(str(row_id)),
        name=name,
        street=row.get("address") or None,
        city=row.get("city") or None,
        state=row.get("state") or None,
        postal_code=row.get("zip_code") or None,
        country=row.get("country") or None,
        full_address=row.get("full_address") or None,
        latitude=_to_float(row.get("latitude")),
        longitude=_to_float(row.get("longitude")),
        provider_place_id=row.get("geoapify_place_id") or None,
        datasource="database",
        raw={
            "phone": row.get("phone"),
            "website": row.get("website_url"),
            "categories": [c for c in (row.get("category") or "").split(",") if c],
        },
    )


def _to_candidates(rows: List[Dict[str, Any]]) -> List[PlaceCandidate]:
    candidates: List[PlaceCandidate] = []
    for row in rows:
        candidate = row_to_candidate(row)
        if candidate is None:
            logger.debug("Skipping restaurant row without id/name: %s", row)
            continue
        candidates.append(candidate)
    return candidates


def fetch_restaurants() -> List[PlaceCandidate]:
    """Read every restaurant row. Raises StoreError when the store is unreachable."""
    rows = _fetch_rows(_SELECT_RESTAURANTS)
    logger.debug("Fetched %d restaurant rows", len(rows))
    return _to_candidates(rows)


def fetch_restaurants_by_place_id(place_id: str) -> List[PlaceCandidate]:
    """Read the rows imported from a given provider place."""
    if not place_id:
        return []
    return _to_candidates(_fetch_rows(_SELECT_BY_PLACE_ID, {"place_id": place_id}))
