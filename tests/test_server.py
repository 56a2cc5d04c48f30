import collections

import pytest

from placefinder.jobs import server
from placefinder.models import PlaceCandidate, ProviderId, StoreId
from placefinder.search.orchestrator import SEARCH_FAILED_MESSAGE, SearchError
from placefinder.vendors.geoapify import GeoapifyError, PlaceNotFoundError

real_get_search_service = server.get_search_service


class DummyService:
    def __init__(self):
        self.searches = []
        self.error = None
        self.details_error = None

    def search(self, query, lat=None, lon=None):
        self.searches.append((query, lat, lon))
        if self.error:
            raise self.error
        return [PlaceCandidate(identity=StoreId("s1"), name="Sushi Den", city="Denver")]

    def resolve_place(self, place_id):
        if self.details_error:
            raise self.details_error
        return PlaceCandidate(identity=ProviderId(place_id), name="Pho House")


class DummyNearby:
    def __init__(self):
        self.calls = []
        self.cleared = []
        self.error = None

    def fetch_nearby(self, lat, lon, radius):
        self.calls.append((lat, lon, radius))
        if self.error:
            raise self.error
        return [PlaceCandidate(identity=StoreId("s1"), name="Sushi Den", latitude=lat, longitude=lon)]

    def clear_cache_for_location(self, lat, lon, radius):
        self.cleared.append((lat, lon, radius))


@pytest.fixture(autouse=True)
def services(monkeypatch):
    service = DummyService()
    nearby = DummyNearby()
    sessions = []

    def fake_service(session):
        sessions.append(session)
        return service

    monkeypatch.setattr(server, "get_search_service", fake_service)
    monkeypatch.setattr(server, "get_nearby", lambda: nearby)
    return {"search": service, "nearby": nearby, "sessions": sessions}


@pytest.fixture
def client():
    return server.app.test_client()


def test_health_endpoint(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_search_validates_params(client, services):
    assert client.get("/search").status_code == 400
    assert client.get("/search?q=%20").status_code == 400
    assert client.get("/search?q=sushi&lat=north").status_code == 400
    assert services["search"].searches == []


def test_search_returns_candidates(client, services):
    response = client.get("/search?q=sushi+den&lat=39.7&lon=-104.9&session=tab-1")

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data[0]["id"] == "s1"
    assert data[0]["source"] == "store"
    assert services["search"].searches == [("sushi den", 39.7, -104.9)]
    assert services["sessions"] == ["tab-1"]


def test_search_failure_maps_to_502(client, services):
    services["search"].error = SearchError(SEARCH_FAILED_MESSAGE)

    response = client.get("/search?q=sushi")

    assert response.status_code == 502
    assert response.get_json()["error"] == SEARCH_FAILED_MESSAGE
    assert services["sessions"] == [server.DEFAULT_SESSION]


def test_nearby_requires_coordinates(client):
    assert client.get("/nearby").status_code == 400
    assert client.get("/nearby?lat=39.7").status_code == 400
    assert client.get("/nearby?lat=39.7&lon=-104.9&radius=0").status_code == 400
    assert client.get("/nearby?lat=39.7&lon=x").status_code == 400


def test_nearby_adds_distance_labels(client, services):
    response = client.get("/nearby?lat=39.7&lon=-104.9")

    assert response.status_code == 200
    item = response.get_json()["data"][0]
    assert item["distance_miles"] == 0
    assert item["distance_label"] == "0 ft"
    assert services["nearby"].calls == [(39.7, -104.9, server.DEFAULT_RADIUS_MILES)]


def test_nearby_store_failure_maps_to_502(client, services):
    services["nearby"].error = SearchError(SEARCH_FAILED_MESSAGE)
    assert client.get("/nearby?lat=39.7&lon=-104.9&radius=2").status_code == 502


def test_clear_nearby_cache(client, services):
    response = client.delete("/nearby/cache?lat=39.7&lon=-104.9&radius=2")

    assert response.status_code == 200
    assert services["nearby"].cleared == [(39.7, -104.9, 2.0)]
    assert client.delete("/nearby/cache").status_code == 400


def test_place_details(client, services):
    response = client.get("/places/pid-1")
    assert response.status_code == 200
    assert response.get_json()["data"]["id"] == "pid-1"

    services["search"].details_error = PlaceNotFoundError("No details found for this place")
    assert client.get("/places/pid-1").status_code == 404

    services["search"].details_error = GeoapifyError("boom")
    assert client.get("/places/pid-1").status_code == 502

    services["search"].details_error = SearchError(SEARCH_FAILED_MESSAGE)
    assert client.get("/places/pid-1").status_code == 502


def test_search_sessions_share_executor_and_are_bounded(monkeypatch):
    monkeypatch.setattr(server, "_services", collections.OrderedDict())
    monkeypatch.setattr(server, "MAX_SESSIONS", 2)

    first = real_get_search_service("tab-1")
    real_get_search_service("tab-2")
    assert real_get_search_service("tab-1") is first
    real_get_search_service("tab-3")

    assert list(server._services) == ["tab-1", "tab-3"]
    assert all(service._executor is server._executor for service in server._services.values())


MENU = [
    {"id": "1", "name": "Pepperoni Pizza"},
    {"id": "2", "name": "Latte"},
    {"id": "3", "name": "Caesar Salad"},
]


def test_dish_search(client):
    response = client.post("/dishes/search", json={"term": "caesar salad", "dishes": MENU})

    assert response.status_code == 200
    first = response.get_json()["data"][0]
    assert first == {"id": "3", "name": "Caesar Salad", "score": 100, "match_type": "exact"}


def test_dish_search_validates_body(client):
    assert client.post("/dishes/search", data="nope").status_code == 400
    assert client.post("/dishes/search", json={"term": "latte"}).status_code == 400
    assert client.post("/dishes/search", json={"term": "latte", "dishes": [{"id": "1"}]}).status_code == 400
    assert client.post("/dishes/search", json={"term": " ", "dishes": MENU}).status_code == 400
    assert client.post("/dishes/search", json={"term": "latte", "dishes": MENU, "min_score": "high"}).status_code == 400


def test_similar_dishes(client):
    response = client.post("/dishes/similar", json={"name": "Pepperoni Pizzas", "dishes": MENU})

    assert response.status_code == 200
    data = response.get_json()["data"]
    assert [item["id"] for item in data] == ["1"]
    assert data[0]["description"] == "Very similar"


def test_similar_dishes_requires_name(client):
    assert client.post("/dishes/similar", json={"dishes": MENU}).status_code == 400
