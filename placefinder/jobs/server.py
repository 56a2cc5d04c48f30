"""HTTP entrypoint exposing restaurant search, nearby listings and menu dish matching."""

from __future__ import annotations

import logging
import os
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests
from flask import Flask, jsonify, request

from placefinder.core.config import get_settings
from placefinder.core.geo import format_distance_miles
from placefinder.matching.dishes import (
    Dish,
    DishMatch,
    find_similar_dishes,
    search_dishes,
    similarity_description,
)
from placefinder.search.nearby import NearbyAggregator, with_distances
from placefinder.search.orchestrator import SearchError, SearchService
from placefinder.vendors.geoapify import GeoapifyError, PlaceNotFoundError

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & services ----------
app = Flask(__name__)

DEFAULT_SESSION = "default"
DEFAULT_RADIUS_MILES = 5.0

MAX_SESSIONS = 256

_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="search")
_services: "OrderedDict[str, SearchService]" = OrderedDict()
_services_lock = threading.Lock()
_nearby: Optional[NearbyAggregator] = None


def get_search_service(session: str) -> SearchService:
    """One service per caller session so a new search only cancels that caller's previous one.

    Services share the module executor; the least recently used session is dropped past MAX_SESSIONS.
    """
    with _services_lock:
        service = _services.get(session)
        if service is None:
            service = SearchService(executor=_executor)
            _services[session] = service
            while len(_services) > MAX_SESSIONS:
                evicted, _ = _services.popitem(last=False)
                logger.debug("Evicted search session %s", evicted)
        else:
            _services.move_to_end(session)
        return service


def get_nearby() -> NearbyAggregator:
    global _nearby
    if _nearby is None:
        _nearby = NearbyAggregator(executor=_executor)
    return _nearby


def _float_arg(name: str) -> Optional[float]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    return float(raw)


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "worker_port_config": settings.worker_port,
                "provider_configured": bool(settings.geoapify_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/search")
def search() -> Any:
    """
    Free-text restaurant search.
    Required: q. Optional: lat, lon (user position), session (caller id).
    """
    query = (request.args.get("q") or "").strip()
    if not query:
        return jsonify({"error": "q is required"}), 400
    try:
        lat = _float_arg("lat")
        lon = _float_arg("lon")
    except ValueError:
        return jsonify({"error": "lat and lon must be numeric"}), 400

    service = get_search_service(request.args.get("session") or DEFAULT_SESSION)
    try:
        results = service.search(query, lat, lon)
    except SearchError as exc:
        return jsonify({"error": str(exc)}), 502

    return jsonify({"data": [candidate.to_dict() for candidate in results]}), 200


@app.get("/nearby")
def nearby() -> Any:
    try:
        lat = _float_arg("lat")
        lon = _float_arg("lon")
        radius = _float_arg("radius")
    except ValueError:
        return jsonify({"error": "lat, lon and radius must be numeric"}), 400
    if lat is None or lon is None:
        return jsonify({"error": "lat and lon are required"}), 400
    if radius is None:
        radius = DEFAULT_RADIUS_MILES
    if radius <= 0:
        return jsonify({"error": "radius must be positive"}), 400

    try:
        results = get_nearby().fetch_nearby(lat, lon, radius)
    except SearchError as exc:
        return jsonify({"error": str(exc)}), 502

    data = []
    for candidate, miles in with_distances(results, lat, lon):
        item = candidate.to_dict()
        item["distance_miles"] = miles
        item["distance_label"] = format_distance_miles(miles)
        data.append(item)
    return jsonify({"data": data}), 200


@app.delete("/nearby/cache")
def clear_nearby_cache() -> Any:
    try:
        lat = _float_arg("lat")
        lon = _float_arg("lon")
        radius = _float_arg("radius")
    except ValueError:
        return jsonify({"error": "lat, lon and radius must be numeric"}), 400
    if lat is None or lon is None:
        return jsonify({"error": "lat and lon are required"}), 400

    get_nearby().clear_cache_for_location(lat, lon, radius if radius is not None else DEFAULT_RADIUS_MILES)
    return jsonify({"data": {"status": "cleared"}}), 200


@app.get("/places/<place_id>")
def place_details(place_id: str) -> Any:
    service = get_search_service(request.args.get("session") or DEFAULT_SESSION)
    try:
        candidate = service.resolve_place(place_id)
    except PlaceNotFoundError as exc:
        return jsonify({"error": str(exc)}), 404
    except (GeoapifyError, requests.RequestException) as exc:
        logger.warning("Place details failed for %s: %s", place_id, exc)
        return jsonify({"error": "provider unavailable"}), 502
    except SearchError as exc:
        return jsonify({"error": str(exc)}), 502

    return jsonify({"data": candidate.to_dict()}), 200


def _dish_payload() -> Dict[str, Any]:
    """Parse ``{"dishes": [{"id", "name"}], ...}``; raises ValueError with a client-facing message."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("JSON body is required")
    raw_dishes = payload.get("dishes")
    if not isinstance(raw_dishes, list):
        raise ValueError("dishes must be a list")
    dishes: List[Dish] = []
    for item in raw_dishes:
        if not isinstance(item, dict) or not item.get("id") or not item.get("name"):
            raise ValueError("each dish needs an id and a name")
        dishes.append(Dish(id=str(item["id"]), name=str(item["name"])))
    payload["dishes"] = dishes
    return payload


def _match_to_dict(match: DishMatch) -> Dict[str, Any]:
    return {
        "id": match.dish.id,
        "name": match.dish.name,
        "score": match.score,
        "match_type": match.match_type,
    }


@app.post("/dishes/search")
def dish_search() -> Any:
    """
    Rank menu dishes against a term.
    Body: term, dishes ([{id, name}]). Optional: min_score.
    """
    try:
        payload = _dish_payload()
        min_score = int(payload.get("min_score", 10))
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400
    term = str(payload.get("term") or "").strip()
    if not term:
        return jsonify({"error": "term is required"}), 400

    matches = search_dishes(payload["dishes"], term, min_score=min_score)
    return jsonify({"data": [_match_to_dict(match) for match in matches]}), 200


@app.post("/dishes/similar")
def dish_similar() -> Any:
    """
    Existing dishes that look like a new entry.
    Body: name, dishes ([{id, name}]). Optional: threshold.
    """
    try:
        payload = _dish_payload()
        threshold = int(payload.get("threshold", 75))
    except (TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400
    name = str(payload.get("name") or "").strip()
    if not name:
        return jsonify({"error": "name is required"}), 400

    data = []
    for match in find_similar_dishes(payload["dishes"], name, threshold=threshold):
        item = _match_to_dict(match)
        item["description"] = similarity_description(match.score)
        data.append(item)
    return jsonify({"data": data}), 200


def main() -> None:
    env_port = os.getenv("PORT")
    port = int(env_port or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
