import pytest

from placefinder.vendors import geoapify


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = DummyResponse(payload={"features": []})

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        return self.response


class DummySettings:
    geoapify_api_key = "key"
    provider_timeout_seconds = 10.0


@pytest.fixture(autouse=True)
def patch_session(monkeypatch):
    session = DummySession()
    monkeypatch.setattr(geoapify, "_SESSION", session)
    monkeypatch.setattr(geoapify, "get_settings", lambda: DummySettings())
    return session


def _feature(**props):
    return {"type": "Feature", "properties": props}


def test_geocode_sends_params_and_returns_features(patch_session):
    patch_session.response = DummyResponse(payload={"features": [_feature(name="Joes Pizza"), {"bad": 1}]})

    found = geoapify.geocode(" pizza ", type="amenity", limit=20, bias=geoapify.proximity_bias(40.1, -73.9))

    assert [f["properties"]["name"] for f in found] == ["Joes Pizza"]
    url, params, timeout = patch_session.calls[0]
    assert url.endswith("/v1/geocode/search")
    assert params["text"] == "pizza"
    assert params["type"] == "amenity"
    assert params["bias"] == "proximity:-73.9,40.1"
    assert params["apiKey"] == "key"
    assert "filter" not in params
    assert timeout == 10.0


def test_geocode_rejects_empty_text(patch_session):
    with pytest.raises(ValueError):
        geoapify.geocode("   ")
    assert patch_session.calls == []


def test_missing_features_means_zero_results(patch_session):
    patch_session.response = DummyResponse(payload={"type": "FeatureCollection"})
    assert geoapify.geocode("pizza") == []


def test_places_builds_circle_filter(patch_session):
    geoapify.places(40.1, -73.9, 8046.7, limit=20)

    url, params, _ = patch_session.calls[0]
    assert url.endswith("/v2/places")
    assert params["filter"] == "circle:-73.9,40.1,8046"
    assert params["bias"] == "proximity:-73.9,40.1"
    assert params["categories"] == geoapify.RESTAURANT_CATEGORIES
    assert params["limit"] == 20


def test_error_status_raises(patch_session):
    patch_session.response = DummyResponse(status_code=401, payload={"message": "bad key"}, text="bad key")
    with pytest.raises(geoapify.GeoapifyError):
        geoapify.geocode("pizza")


def test_non_json_body_raises(patch_session):
    patch_session.response = DummyResponse(payload=ValueError("no json"))
    with pytest.raises(geoapify.GeoapifyError):
        geoapify.places(1.0, 2.0, 100)


def test_place_details_returns_first_feature(patch_session):
    patch_session.response = DummyResponse(payload={"features": [_feature(place_id="pid", name="Acme")]})

    detail = geoapify.place_details("pid")

    assert detail["properties"]["name"] == "Acme"
    url, params, _ = patch_session.calls[0]
    assert url.endswith("/v2/place-details")
    assert params["id"] == "pid"


def test_place_details_without_features_is_an_error(patch_session):
    patch_session.response = DummyResponse(payload={"features": []})
    with pytest.raises(geoapify.PlaceNotFoundError):
        geoapify.place_details("pid")


def test_missing_api_key_raises(monkeypatch, patch_session):
    class NoKey(DummySettings):
        geoapify_api_key = ""

    monkeypatch.setattr(geoapify, "get_settings", lambda: NoKey())
    with pytest.raises(geoapify.GeoapifyError):
        geoapify.geocode("pizza")
    assert patch_session.calls == []


def test_call_count_increments(patch_session):
    before = geoapify.get_call_count()
    geoapify.geocode("pizza")
    geoapify.geocode("tacos")
    assert geoapify.get_call_count() == before + 2
