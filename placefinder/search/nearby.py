"""Geography-first listing of restaurants around a point, with a persistent cache."""

import json
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

import requests

from placefinder.core import db
from placefinder.core.cache import FileKeyValueStore, KeyValueStore
from placefinder.core.config import get_settings
from placefinder.core.db import StoreError
from placefinder.core.geo import distance_miles, miles_to_meters
from placefinder.etl.transform import apply_parsed_address, features_to_candidates
from placefinder.matching.dedup import find_duplicate
from placefinder.models import NearbyCacheEntry, PlaceCandidate
from placefinder.search.orchestrator import SEARCH_FAILED_MESSAGE, SearchError
from placefinder.vendors import geoapify
from placefinder.vendors.geoapify import GeoapifyError, proximity_bias

logger = logging.getLogger(__name__)

CACHE_INVALIDATION_MILES = 0.31
NEARBY_RESULT_LIMIT = 20

_CACHE_ERRORS = (OSError, ValueError, TypeError, KeyError)


def cache_key(lat: float, lon: float, radius_miles: float) -> str:
    return f"nearby_{lat:.4f}_{lon:.4f}_{float(radius_miles):g}"


def _distance_from(lat: float, lon: float, candidate: PlaceCandidate) -> Optional[float]:
    coordinates = candidate.coordinates
    if coordinates is None:
        return None
    return distance_miles(lat, lon, coordinates[0], coordinates[1])


def with_distances(
    results: List[PlaceCandidate], lat: float, lon: float
) -> List[Tuple[PlaceCandidate, Optional[float]]]:
    """Pair each result with its distance in miles from the query point."""
    return [(candidate, _distance_from(lat, lon, candidate)) for candidate in results]


def sort_by_distance(results: List[PlaceCandidate], lat: float, lon: float) -> List[PlaceCandidate]:
    paired = with_distances(results, lat, lon)
    paired.sort(key=lambda item: (item[1] is None, item[1] or 0.0))
    return [candidate for candidate, _ in paired]


class NearbyAggregator:
    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        settings = get_settings()
        self.store = store if store is not None else FileKeyValueStore(settings.nearby_cache_dir)
        self.ttl_seconds = settings.nearby_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="nearby")

    def fetch_nearby(self, lat: float, lon: float, radius_miles: float) -> List[PlaceCandidate]:
        key = cache_key(lat, lon, radius_miles)
        entry = self._read(key)
        if entry is not None and self._is_fresh(entry, lat, lon):
            logger.debug("Nearby cache hit for %s", key)
            return entry.results

        provider_future = self._executor.submit(self._fetch_provider, lat, lon, radius_miles)
        store_future = self._executor.submit(db.fetch_restaurants)
        try:
            rows = store_future.result()
        except StoreError as exc:
            logger.error("Nearby lookup failed reading the restaurant store", exc_info=True)
            raise SearchError(SEARCH_FAILED_MESSAGE) from exc
        provider = provider_future.result()
        provider_failed = provider is None

        in_radius = []
        for row, distance in with_distances(rows, lat, lon):
            if distance is not None and distance <= radius_miles:
                in_radius.append(row)

        unique = []
        for candidate in provider or []:
            duplicate = find_duplicate(candidate, rows)
            if duplicate is not None:
                logger.debug("Dropping nearby provider hit %s: matches store row %s", candidate.name, duplicate.id)
                continue
            unique.append(apply_parsed_address(candidate))

        results = sort_by_distance(in_radius + unique, lat, lon)
        if provider_failed:
            logger.info("Not caching %s: provider lookup failed", key)
        else:
            self._write(key, NearbyCacheEntry(results=results, timestamp=self._clock(), location=(lat, lon), radius=radius_miles))
        logger.info(
            "Nearby %s: %d store rows in radius, %d provider results",
            key,
            len(in_radius),
            len(unique),
        )
        return results

    def clear_cache_for_location(self, lat: float, lon: float, radius_miles: float) -> None:
        key = cache_key(lat, lon, radius_miles)
        try:
            self.store.delete(key)
        except _CACHE_ERRORS as exc:
            logger.warning("Failed to clear nearby cache entry %s: %s", key, exc)

    def _fetch_provider(self, lat: float, lon: float, radius_miles: float) -> Optional[List[PlaceCandidate]]:
        """Provider hits around the point; None when the lookup failed."""
        try:
            hits = geoapify.places(
                lat,
                lon,
                miles_to_meters(radius_miles),
                limit=NEARBY_RESULT_LIMIT,
                bias=proximity_bias(lat, lon),
            )
        except (requests.RequestException, GeoapifyError, ValueError) as exc:
            logger.warning("Nearby provider lookup failed: %s", exc)
            return None
        return features_to_candidates(hits)

    def _is_fresh(self, entry: NearbyCacheEntry, lat: float, lon: float) -> bool:
        if self._clock() - entry.timestamp >= self.ttl_seconds:
            return False
        moved = distance_miles(entry.location[0], entry.location[1], lat, lon)
        return moved < CACHE_INVALIDATION_MILES

    def _read(self, key: str) -> Optional[NearbyCacheEntry]:
        try:
            raw = self.store.get(key)
            if raw is None:
                return None
            return NearbyCacheEntry.from_dict(json.loads(raw))
        except _CACHE_ERRORS as exc:
            logger.warning("Ignoring unreadable nearby cache entry %s: %s", key, exc)
            return None

    def _write(self, key: str, entry: NearbyCacheEntry) -> None:
        try:
            self.store.set(key, json.dumps(entry.to_dict()))
        except _CACHE_ERRORS as exc:
            logger.warning("Failed to write nearby cache entry %s: %s", key, exc)
