import pytest

from placefinder.etl import country_detection


@pytest.mark.parametrize(
    "address, expected",
    [
        ("10 Downing St, London SW1A 2AA", "UK"),
        ("350 5th Ave, New York, NY 10118", "USA"),
        ("290 Bremner Blvd, Toronto, ON M5V 3L9", "CANADA"),
        ("Dizengoff St 50, Tel Aviv 6433222", "ISRAEL"),
        ("MG Road, Bengaluru, Karnataka 560001", "INDIA"),
        ("Unter den Linden 77, 10117 Berlin", "GERMANY"),
        ("1600 Pennsylvania Ave NW, Washington, DC 20500", "USA"),
    ],
)
def test_detect_country(address, expected):
    assert country_detection.detect_country(address, default="USA") == expected


def test_unambiguous_five_digit_code_beats_default():
    assert country_detection.detect_country("12 Some Rd 90210", default="UK") == "USA"


def test_no_signal_falls_back_to_default():
    assert country_detection.detect_country("somewhere quiet", default="UK") == "UK"
    assert country_detection.detect_country("", default="USA") == "USA"


def test_default_comes_from_settings(monkeypatch):
    class DummySettings:
        home_country = "ISRAEL"

    monkeypatch.setattr("placefinder.core.config.get_settings", lambda: DummySettings())
    assert country_detection.detect_country("somewhere quiet") == "ISRAEL"


def test_scoring_table_weights():
    scores = country_detection.score_countries("10 Downing St, London SW1A 2AA")
    assert scores["UK"] == country_detection.UNIQUE_POSTAL_WEIGHT + country_detection.TERMS_WEIGHT
    assert scores["CANADA"] == country_detection.TERMS_WEIGHT
    assert scores["USA"] == 0

    us = country_detection.score_countries("350 5th Ave, New York, NY 10118")
    assert us["USA"] == (
        country_detection.US_STATE_WEIGHT
        + country_detection.US_TERMS_WEIGHT
        + country_detection.US_FIVE_DIGIT_WEIGHT
    )


def test_five_digit_code_with_european_terms_is_not_american():
    scores = country_detection.score_countries("Via Roma 10, 00184 Roma")
    assert scores["USA"] == 0
    assert scores["ITALY"] == country_detection.TERMS_WEIGHT
