from placefinder.etl import transform
from placefinder.models import PROVIDER_SOURCE, ProviderId


def _feature(**props):
    base = {
        "place_id": "pid-1",
        "name": "Joes Pizza",
        "address_line1": "123 Main Street",
        "address_line2": "Springfield, IL 62701, United States of America",
        "city": "Springfield",
        "state": "Illinois",
        "state_code": "IL",
        "postcode": "62701",
        "country_code": "us",
        "formatted": "Joes Pizza, 123 Main Street, Springfield, IL 62701, United States of America",
        "lat": 40.1,
        "lon": -73.9,
        "categories": ["catering.restaurant.pizza"],
        "contact": {"phone": "555-0100"},
        "website": "https://joes.example",
        "datasource": {"sourcename": "openstreetmap"},
    }
    base.update(props)
    return {"type": "Feature", "properties": base}


def test_feature_to_candidate_maps_properties():
    candidate = transform.feature_to_candidate(_feature())

    assert candidate.identity == ProviderId("pid-1")
    assert candidate.source == PROVIDER_SOURCE
    assert candidate.key == "pid-1"
    assert candidate.street == "123 Main Street"
    assert candidate.state == "IL"
    assert candidate.country == "US"
    assert candidate.coordinates == (40.1, -73.9)
    assert candidate.datasource == "openstreetmap"
    assert candidate.raw["phone"] == "555-0100"
    assert candidate.raw["website"] == "https://joes.example"
    assert candidate.raw["categories"] == ["catering.restaurant.pizza"]


def test_feature_without_name_or_id_is_skipped():
    assert transform.feature_to_candidate(_feature(name=None)) is None
    assert transform.feature_to_candidate(_feature(place_id=None)) is None
    assert transform.features_to_candidates([_feature(name=""), _feature()])[0].id == "pid-1"


def test_unique_by_place_id_keeps_first():
    first = transform.feature_to_candidate(_feature(name="First"))
    second = transform.feature_to_candidate(_feature(name="Second"))
    other = transform.feature_to_candidate(_feature(place_id="pid-2"))

    unique = transform.unique_by_place_id([first, second, other])

    assert [c.name for c in unique] == ["First", "Joes Pizza"]


def test_clean_provider_address_keeps_real_street_line():
    candidate = transform.feature_to_candidate(_feature())
    assert transform.clean_provider_address(candidate) is candidate


def test_clean_provider_address_replaces_name_used_as_street():
    candidate = transform.feature_to_candidate(
        _feature(
            address_line1="Joes Pizza",
            address_line2="123 Main Street, Springfield, IL 62701, United States of America",
            city=None,
        )
    )

    cleaned = transform.clean_provider_address(candidate)

    assert cleaned.street == "123 Main Street"
    assert cleaned.city == "Springfield"
    assert candidate.street == "Joes Pizza"


def test_clean_provider_address_strips_leading_name_from_formatted():
    candidate = transform.feature_to_candidate(
        _feature(address_line1=None, address_line2=None, city=None)
    )

    cleaned = transform.clean_provider_address(candidate)

    assert cleaned.street == "123 Main Street"
    assert cleaned.city == "Springfield"


def test_apply_parsed_address_fills_missing_fields():
    candidate = transform.feature_to_candidate(
        _feature(address_line1=None, postcode=None, state_code=None, state=None)
    )

    parsed = transform.apply_parsed_address(candidate)

    assert parsed.street == "123 Main Street"
    assert parsed.state == "IL"
    assert parsed.postal_code == "62701"
    assert parsed.country == "US"
