import pytest

from placefinder.core import geo


def test_distance_between_known_cities():
    # New York to Los Angeles
    assert geo.distance_km(40.7128, -74.0060, 34.0522, -118.2437) == pytest.approx(3936, rel=0.01)
    assert geo.distance_miles(40.7128, -74.0060, 34.0522, -118.2437) == pytest.approx(2445, rel=0.01)


def test_distance_to_self_is_zero():
    assert geo.distance_km(39.74, -104.99, 39.74, -104.99) == 0


def test_miles_to_meters():
    assert geo.miles_to_meters(5) == pytest.approx(8046.7)


@pytest.mark.parametrize(
    "distance, label",
    [(None, ""), (0.1, "528 ft"), (1.44, "1.4 mi"), (12.6, "13 mi")],
)
def test_format_distance_miles(distance, label):
    assert geo.format_distance_miles(distance) == label
