import json
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests

from placefinder.core import db
from placefinder.core.cache import MemoryKeyValueStore
from placefinder.core.db import StoreError
from placefinder.models import NearbyCacheEntry, PlaceCandidate, StoreId
from placefinder.search import nearby
from placefinder.search.orchestrator import SearchError
from placefinder.vendors import geoapify

LAT, LON = 39.74, -104.99
TTL = 600


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class BrokenStore(MemoryKeyValueStore):
    def set(self, key, value):
        raise OSError("disk full")


def _row(uuid, name, lat, lon, **kwargs):
    return PlaceCandidate(identity=StoreId(uuid), name=name, latitude=lat, longitude=lon, **kwargs)


def _feature(place_id, name, lat, lon, **props):
    properties = {"place_id": place_id, "name": name, "lat": lat, "lon": lon}
    properties.update(props)
    return {"type": "Feature", "properties": properties}


@pytest.fixture
def calls(monkeypatch):
    recorded = {
        "store": 0,
        "places": [],
        "rows": [
            _row("s1", "Sushi Den", LAT, LON, street="1487 S Pearl St", city="Denver"),
            _row("s2", "Far Diner", 40.5, LON, city="Boulder"),
        ],
        "features": [
            _feature("dup", "Sushi Den", LAT, LON, formatted="1487 S Pearl St, Denver, CO 80210"),
            _feature("cart", "Noodle Cart", None, None),
            _feature("pho", "Pho House", 39.75, LON, formatted="Pho House, 1 Broadway, Denver, CO 80203"),
        ],
    }

    def fake_fetch():
        recorded["store"] += 1
        return recorded["rows"]

    def fake_places(lat, lon, radius, **kwargs):
        recorded["places"].append((lat, lon, radius))
        return recorded["features"]

    monkeypatch.setattr(db, "fetch_restaurants", fake_fetch)
    monkeypatch.setattr(geoapify, "places", fake_places)
    return recorded


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def aggregator(store, clock):
    executor = ThreadPoolExecutor(max_workers=2)
    yield nearby.NearbyAggregator(store=store, ttl_seconds=TTL, clock=clock, executor=executor)
    executor.shutdown(wait=True)


def test_cache_key_format():
    assert nearby.cache_key(LAT, LON, 5) == "nearby_39.7400_-104.9900_5"
    assert nearby.cache_key(LAT, LON, 2.5) == "nearby_39.7400_-104.9900_2.5"


def test_merges_store_rows_and_provider_hits_sorted_by_distance(aggregator, calls):
    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert [c.id for c in results] == ["s1", "pho", "cart"]
    assert calls["places"][0][2] == pytest.approx(5 * 1609.34)
    pho = results[1]
    assert pho.street == "1 Broadway"
    assert pho.city == "Denver"


def test_second_call_is_served_from_cache(aggregator, calls, store):
    first = aggregator.fetch_nearby(LAT, LON, 5)
    second = aggregator.fetch_nearby(LAT, LON, 5)

    assert calls["store"] == 1
    assert len(store) == 1
    assert [c.id for c in second] == [c.id for c in first]
    assert second[0].source == first[0].source


def test_expired_entry_is_refetched(aggregator, calls, clock):
    aggregator.fetch_nearby(LAT, LON, 5)
    clock.now += TTL

    aggregator.fetch_nearby(LAT, LON, 5)

    assert calls["store"] == 2


def test_entry_recorded_far_from_query_point_is_refetched(aggregator, calls, store, clock):
    stale = NearbyCacheEntry(results=[], timestamp=clock.now, location=(39.80, LON), radius=5)
    store.set(nearby.cache_key(LAT, LON, 5), json.dumps(stale.to_dict()))

    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert calls["store"] == 1
    assert results


def test_entry_recorded_close_to_query_point_is_reused(aggregator, calls, store, clock):
    cached = NearbyCacheEntry(
        results=[_row("cached", "Cached Cafe", LAT, LON)],
        timestamp=clock.now - 10,
        location=(LAT + 0.001, LON),
        radius=5,
    )
    store.set(nearby.cache_key(LAT, LON, 5), json.dumps(cached.to_dict()))

    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert [c.id for c in results] == ["cached"]
    assert calls["store"] == 0


def test_unreadable_entry_is_a_miss(aggregator, calls, store):
    store.set(nearby.cache_key(LAT, LON, 5), "not json")

    assert aggregator.fetch_nearby(LAT, LON, 5)
    assert calls["store"] == 1


def test_cache_write_failure_is_swallowed(calls, clock):
    aggregator = nearby.NearbyAggregator(store=BrokenStore(), ttl_seconds=TTL, clock=clock)

    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert [c.id for c in results] == ["s1", "pho", "cart"]


def test_provider_failure_yields_store_rows_only(aggregator, calls, monkeypatch, store):
    def broken(*args, **kwargs):
        raise requests.Timeout("slow provider")

    monkeypatch.setattr(geoapify, "places", broken)

    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert [c.id for c in results] == ["s1"]
    assert len(store) == 0


def test_store_only_result_is_not_reused_after_provider_recovers(aggregator, calls, monkeypatch):
    def broken(*args, **kwargs):
        raise requests.Timeout("slow provider")

    monkeypatch.setattr(geoapify, "places", broken)
    aggregator.fetch_nearby(LAT, LON, 5)
    monkeypatch.setattr(geoapify, "places", lambda *args, **kwargs: calls["features"])

    results = aggregator.fetch_nearby(LAT, LON, 5)

    assert [c.id for c in results] == ["s1", "pho", "cart"]
    assert calls["store"] == 2


def test_store_failure_raises(aggregator, calls, monkeypatch):
    def broken():
        raise StoreError("connection refused")

    monkeypatch.setattr(db, "fetch_restaurants", broken)

    with pytest.raises(SearchError):
        aggregator.fetch_nearby(LAT, LON, 5)


def test_clear_cache_for_location(aggregator, calls, store):
    aggregator.fetch_nearby(LAT, LON, 5)
    aggregator.clear_cache_for_location(LAT, LON, 5)

    assert len(store) == 0
    aggregator.fetch_nearby(LAT, LON, 5)
    assert calls["store"] == 2


def test_sort_by_distance_puts_unknown_coordinates_last():
    near = _row("near", "Near", LAT, LON)
    far = _row("far", "Far", 39.9, LON)
    unknown = _row("unknown", "Unknown", None, None)

    ordered = nearby.sort_by_distance([unknown, far, near], LAT, LON)

    assert [c.id for c in ordered] == ["near", "far", "unknown"]
