import pytest

from placefinder.matching import text


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Joe's Pizza", "joes pizza"),
        ("  Fish & Chips  ", "fish and chips"),
        ("123 Main St.", "123 main street"),
        ("500 Ocean Blvd", "500 ocean boulevard"),
        ("", ""),
        ("!!!", ""),
    ],
)
def test_normalize(raw, expected):
    assert text.normalize(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["Joe's Pizza", "Fish & Chips, 12 Elm Rd", "  A-B_C  ", "st st st", "Café Landwer", ""],
)
def test_normalize_is_idempotent(raw):
    once = text.normalize(raw)
    assert text.normalize(once) == once


def test_similarity_exact_and_containment():
    assert text.similarity("Joe's Pizza", "joes pizza") == 100
    assert text.similarity("Joes Pizza Brooklyn", "joes pizza") == 95
    assert text.similarity("pizza", "Joes Pizza") == 95


def test_similarity_token_formula_is_directional():
    # b has 2 tokens, 1 found in a -> 40 + 0.5 * 80
    assert text.similarity("thai kitchen", "thai palace") == 80
    # b has 3 tokens, 1 found in a -> 40 + 80 / 3, rounded
    assert text.similarity("thai kitchen", "golden thai palace") == 67
    assert text.similarity("golden thai palace", "thai kitchen") == 80


def test_similarity_bounds_and_empty_inputs():
    assert text.similarity("sushi", "tacos") == 0
    assert text.similarity("", "tacos") == text.CONTAINS_SCORE
    assert text.similarity("tacos", "?!") == text.CONTAINS_SCORE
    assert text.similarity("", "") == 100
    for a, b in [("a b c", "c d e f g"), ("x", "x y"), ("one two", "two one three")]:
        assert 0 <= text.similarity(a, b) <= 100


def test_threshold_constants_are_fixed():
    assert (
        text.SIMILARITY_DB_MATCH,
        text.SIMILARITY_STORE_ROW_ADDRESS,
        text.SIMILARITY_STORE_PROVIDER_ADDRESS,
        text.SIMILARITY_PROVIDER_ADDRESS,
        text.SIMILARITY_NAME_IS_ADDRESS,
        text.SIMILARITY_STRICT_NAME,
        text.SIMILARITY_NAME_ONLY,
    ) == (60, 65, 70, 80, 90, 95, 98)


def test_token_coverage_matches_substrings_both_ways():
    assert text.token_coverage("taco bell", "Taco Bell Cantina") == 1.0
    assert text.token_coverage("tacos", "Taco Shack") == 1.0
    assert text.token_coverage("sushi place", "Tokyo Sushi") == 0.5
    assert text.token_coverage("", "anything") == 0.0


def test_mentions_uses_word_boundaries():
    assert text.mentions("Austin", "100 Congress Ave, Austin, TX 78701")
    assert not text.mentions("austin", "Austintown, OH")
    assert not text.mentions("", "Austin")
