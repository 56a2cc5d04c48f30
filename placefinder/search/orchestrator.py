"""Free-text restaurant search across the places provider and the local store.

A search fans out to several provider strategies and one store read on a
thread pool, cleans and deduplicates the provider hits against the store
rows, scores everything and returns candidates ordered by relevance.

Provider failures are absorbed per strategy. A failed store read aborts the
search with ``SearchError`` because deduplication needs the store rows.
Only one search per ``SearchService`` is live at a time; starting a new one
supersedes the previous, whose result is discarded.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from placefinder.core import db
from placefinder.core.db import StoreError
from placefinder.core.geo import distance_km
from placefinder.etl.transform import (
    clean_provider_address,
    feature_to_candidate,
    features_to_candidates,
    unique_by_place_id,
)
from placefinder.matching.dedup import dedupe_provider_results, find_store_duplicate
from placefinder.matching.query_analysis import analyze
from placefinder.matching.text import SIMILARITY_DB_MATCH, mentions, normalize, similarity, token_coverage
from placefinder.models import BUSINESS_LOCATION_PROPOSAL, STORE_SOURCE, PlaceCandidate, QueryAnalysis, ScoredCandidate
from placefinder.vendors import geoapify
from placefinder.vendors.geoapify import GeoapifyError, PlaceNotFoundError, circle_filter, proximity_bias

logger = logging.getLogger(__name__)

SEARCH_RADIUS_METERS = 80_000
USER_PLACES_RADIUS_METERS = 15_000
PROVIDER_RESULT_LIMIT = 20
TOKEN_COVERAGE_MIN = 0.8
NON_AUTHORITATIVE_SOURCE = "openstreetmap"

STORE_BONUS = 10
LOCATION_BONUS = 30
PENALTY_FREE_KM = 5.0
PENALTY_FULL_KM = 40.0
MAX_DISTANCE_PENALTY = 20.0

SEARCH_FAILED_MESSAGE = "search failed, try again"

_STRATEGY_ERRORS = (requests.RequestException, GeoapifyError, ValueError)

Point = Tuple[float, float]
CacheKey = Tuple[str, Optional[str], Optional[str]]


class SearchError(RuntimeError):
    """Raised when a search cannot produce trustworthy results."""


class SearchToken:
    """Handle for one search; cancelled once a newer search starts or ``abort`` is called."""

    def __init__(self, service: "SearchService", generation: int) -> None:
        self._service = service
        self.generation = generation

    @property
    def cancelled(self) -> bool:
        return self._service.current_generation() != self.generation


def distance_penalty(distance: Optional[float]) -> float:
    """Points lost for distance in km: none up to 5 km, growing linearly to 20 at 40 km."""
    if distance is None or distance <= PENALTY_FREE_KM:
        return 0.0
    scaled = (distance - PENALTY_FREE_KM) / (PENALTY_FULL_KM - PENALTY_FREE_KM) * MAX_DISTANCE_PENALTY
    return min(MAX_DISTANCE_PENALTY, max(0.0, scaled))


def location_mentioned(candidate: PlaceCandidate, location: Optional[str]) -> bool:
    if not location:
        return False
    return any(
        mentions(location, text)
        for text in (candidate.city, candidate.state, candidate.full_address)
        if text
    )


def score_candidate(
    candidate: PlaceCandidate,
    analysis: QueryAnalysis,
    reference: Optional[Point],
) -> ScoredCandidate:
    name_score = similarity(candidate.name, analysis.business_name)
    score = float(name_score)
    if candidate.source == STORE_SOURCE:
        score += STORE_BONUS
    if location_mentioned(candidate, analysis.location):
        score += LOCATION_BONUS
    coordinates = candidate.coordinates
    if reference is not None and coordinates is not None:
        score -= distance_penalty(distance_km(reference[0], reference[1], coordinates[0], coordinates[1]))
    return ScoredCandidate(candidate=candidate, name_similarity=name_score, relevance_score=score)


def passes_token_filter(candidate: PlaceCandidate, business_name: str) -> bool:
    return token_coverage(business_name, candidate.name) >= TOKEN_COVERAGE_MIN


def is_authoritative(candidate: PlaceCandidate) -> bool:
    return bool(candidate.datasource) and candidate.datasource.lower() != NON_AUTHORITATIVE_SOURCE


def _coordinate_key(value: Optional[float]) -> Optional[str]:
    return None if value is None else f"{value:.4f}"


class SearchService:
    """Per-caller search entrypoint with a session cache and single-flight cancellation."""

    def __init__(self, executor: Optional[ThreadPoolExecutor] = None, max_workers: int = 8) -> None:
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="search")
        self._cache: Dict[CacheKey, List[PlaceCandidate]] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def current_generation(self) -> int:
        with self._lock:
            return self._generation

    def _begin(self) -> SearchToken:
        with self._lock:
            self._generation += 1
            return SearchToken(self, self._generation)

    def abort(self) -> None:
        """Cancel the in-flight search, if any."""
        with self._lock:
            self._generation += 1

    def clear_cache(self) -> None:
        self._cache.clear()

    def search(
        self,
        query: str,
        user_lat: Optional[float] = None,
        user_lon: Optional[float] = None,
    ) -> List[PlaceCandidate]:
        normalized = normalize(query)
        if not normalized:
            return []

        user: Optional[Point] = None
        if user_lat is not None and user_lon is not None:
            user = (user_lat, user_lon)

        key: CacheKey = (normalized, _coordinate_key(user_lat), _coordinate_key(user_lon))
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit for %r", query)
            return list(cached)

        token = self._begin()
        try:
            results = self._run(query, user, token)
        except StoreError as exc:
            if token.cancelled:
                logger.info("Superseded search for %r hit a store failure; discarding it", query)
                return []
            logger.error("Search for %r failed reading the restaurant store", query, exc_info=True)
            raise SearchError(SEARCH_FAILED_MESSAGE) from exc

        if token.cancelled:
            logger.info("Search for %r was superseded; discarding its results", query)
            return []
        self._cache[key] = results
        return list(results)

    def place_details(self, place_id: str) -> PlaceCandidate:
        candidate = feature_to_candidate(geoapify.place_details(place_id))
        if candidate is None:
            raise PlaceNotFoundError("No details found for this place")
        return candidate

    def resolve_place(self, place_id: str) -> PlaceCandidate:
        """Provider place details, or the store row already holding that place."""
        candidate = self.place_details(place_id)
        try:
            existing = find_store_duplicate(
                candidate,
                db.fetch_restaurants(),
                lookup_by_place_id=db.fetch_restaurants_by_place_id,
            )
        except StoreError as exc:
            logger.error("Resolving place %s failed reading the restaurant store", place_id, exc_info=True)
            raise SearchError(SEARCH_FAILED_MESSAGE) from exc
        if existing is not None:
            logger.info("Place %s resolved to store row %s", place_id, existing.id)
            return existing
        return candidate

    def _run(self, query: str, user: Optional[Point], token: SearchToken) -> List[PlaceCandidate]:
        analysis = analyze(query)
        logger.info(
            "Query analysis for %r: type=%s business=%r location=%r",
            query,
            analysis.type,
            analysis.business_name,
            analysis.location,
        )

        store_future = self._executor.submit(db.fetch_restaurants)
        if analysis.type == BUSINESS_LOCATION_PROPOSAL and analysis.location and analysis.business_name:
            provider, located = self._search_business_location(query, analysis, user, token)
            reference = located or user
        else:
            provider = self._search_business(query, analysis, user, token)
            reference = user

        rows = store_future.result()
        if token.cancelled:
            return []

        provider = [clean_provider_address(candidate) for candidate in provider]
        db_matches = [row for row in rows if similarity(row.name, query) > SIMILARITY_DB_MATCH]
        unique_provider = dedupe_provider_results(provider, db_matches)

        scored = [score_candidate(row, analysis, reference) for row in db_matches]
        scored.extend(score_candidate(candidate, analysis, reference) for candidate in unique_provider)
        scored.sort(key=lambda item: item.relevance_score, reverse=True)
        logger.info(
            "Search for %r: %d store matches, %d provider results (%d provider calls so far)",
            query,
            len(db_matches),
            len(unique_provider),
            geoapify.get_call_count(),
        )
        return [item.candidate for item in scored]

    def _call(self, token: SearchToken, label: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one provider call; cancellation or failure yields ``None``."""
        if token.cancelled:
            return None
        try:
            return func(*args, **kwargs)
        except _STRATEGY_ERRORS as exc:
            logger.warning("Search strategy %s failed: %s", label, exc)
            return None

    def _gather(self, futures: Sequence[Future]) -> List[Any]:
        return [future.result() for future in futures]

    def _search_business_location(
        self,
        query: str,
        analysis: QueryAnalysis,
        user: Optional[Point],
        token: SearchToken,
    ) -> Tuple[List[PlaceCandidate], Optional[Point]]:
        near_location = self._executor.submit(self._near_location_strategy, analysis, token)
        text_search = self._executor.submit(self._text_strategy, query, user, token)
        (located_results, located), text_results = self._gather([near_location, text_search])
        return unique_by_place_id(located_results + text_results), located

    def _near_location_strategy(
        self,
        analysis: QueryAnalysis,
        token: SearchToken,
    ) -> Tuple[List[PlaceCandidate], Optional[Point]]:
        found = self._call(token, "geocode location", geoapify.geocode, analysis.location, limit=1)
        if not found:
            return [], None
        props = found[0]["properties"]
        try:
            point = (float(props["lat"]), float(props["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Geocoded location %r has no coordinates", analysis.location)
            return [], None

        radius_hits = self._call(
            token,
            "places near location",
            geoapify.places,
            point[0],
            point[1],
            SEARCH_RADIUS_METERS,
            limit=PROVIDER_RESULT_LIMIT,
            bias=proximity_bias(*point),
        ) or []
        nearby = [
            candidate
            for candidate in features_to_candidates(radius_hits)
            if passes_token_filter(candidate, analysis.business_name)
        ]
        amenity_hits = self._call(
            token,
            "amenity near location",
            geoapify.geocode,
            analysis.business_name,
            type="amenity",
            limit=PROVIDER_RESULT_LIMIT,
            filter=circle_filter(point[0], point[1], SEARCH_RADIUS_METERS),
            bias=proximity_bias(*point),
        ) or []
        return nearby + features_to_candidates(amenity_hits), point

    def _text_strategy(self, query: str, user: Optional[Point], token: SearchToken) -> List[PlaceCandidate]:
        hits = self._call(
            token,
            "text search",
            geoapify.geocode,
            query,
            type="amenity",
            limit=PROVIDER_RESULT_LIMIT,
            filter=circle_filter(user[0], user[1], SEARCH_RADIUS_METERS) if user else None,
        ) or []
        return features_to_candidates(hits)

    def _search_business(
        self,
        query: str,
        analysis: QueryAnalysis,
        user: Optional[Point],
        token: SearchToken,
    ) -> List[PlaceCandidate]:
        futures = []
        if user is not None:
            futures.append(
                self._executor.submit(
                    self._call,
                    token,
                    "places near user",
                    geoapify.places,
                    user[0],
                    user[1],
                    USER_PLACES_RADIUS_METERS,
                    limit=PROVIDER_RESULT_LIMIT,
                )
            )
        futures.append(
            self._executor.submit(
                self._call,
                token,
                "amenity search",
                geoapify.geocode,
                query,
                type="amenity",
                limit=PROVIDER_RESULT_LIMIT,
                bias=proximity_bias(*user) if user else None,
            )
        )
        futures.append(
            self._executor.submit(self._call, token, "broad search", geoapify.geocode, query, limit=PROVIDER_RESULT_LIMIT)
        )

        merged: List[PlaceCandidate] = []
        for hits in self._gather(futures):
            merged.extend(features_to_candidates(hits or []))
        return [
            candidate
            for candidate in unique_by_place_id(merged)
            if is_authoritative(candidate) or passes_token_filter(candidate, analysis.business_name)
        ]
