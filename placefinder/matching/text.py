"""Text normalisation and the coarse 0-100 similarity score.

The score is asymmetric: token overlap is measured as the share of tokens of
``b`` found in ``a``. Duplicate detection and ranking thresholds are tuned
against this exact behaviour, so the constants below are part of the contract.
"""

import re
from typing import List

SIMILARITY_DB_MATCH = 60
SIMILARITY_STORE_ROW_ADDRESS = 65
SIMILARITY_STORE_PROVIDER_ADDRESS = 70
SIMILARITY_LOOSE_NAME = 80
SIMILARITY_PROVIDER_ADDRESS = 80
SIMILARITY_NAME_IS_ADDRESS = 90
SIMILARITY_STRICT_NAME = 95
SIMILARITY_NAME_ONLY = 98

EXACT_SCORE = 100
CONTAINS_SCORE = 95
TOKEN_BASE_SCORE = 40
TOKEN_WEIGHT = 80

_STREET_SUFFIXES = (
    ("st", "street"),
    ("ave", "avenue"),
    ("rd", "road"),
    ("blvd", "boulevard"),
    ("dr", "drive"),
    ("ln", "lane"),
    ("ct", "court"),
    ("pl", "place"),
    ("pkwy", "parkway"),
)
_SUFFIX_PATTERNS = [(re.compile(rf"\b{short}\b"), full) for short, full in _STREET_SUFFIXES]

_APOSTROPHES = re.compile(r"['‘’`]")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lower-case, drop possessives and punctuation, expand street suffixes."""
    if not text:
        return ""
    value = text.lower()
    value = _APOSTROPHES.sub("", value)
    value = value.replace("&", " and ")
    value = _PUNCTUATION.sub(" ", value)
    for pattern, full in _SUFFIX_PATTERNS:
        value = pattern.sub(full, value)
    return _WHITESPACE.sub(" ", value).strip()


def tokens(text: str) -> List[str]:
    value = normalize(text)
    return value.split(" ") if value else []


def similarity(a: str, b: str) -> int:
    """An empty side counts as contained in the other and scores 95."""
    s1 = normalize(a)
    s2 = normalize(b)
    if s1 == s2:
        return EXACT_SCORE
    if s1 in s2 or s2 in s1:
        return CONTAINS_SCORE

    words1 = set(s1.split(" "))
    words2 = s2.split(" ")
    matches = sum(1 for word in words2 if word in words1)
    if matches == 0:
        return 0
    score = TOKEN_BASE_SCORE + (matches / len(words2)) * TOKEN_WEIGHT
    return int(round(min(CONTAINS_SCORE, score)))


def token_coverage(query: str, name: str) -> float:
    """Share of query tokens that appear, as a substring either way, in a name token."""
    query_tokens = tokens(query)
    if not query_tokens:
        return 0.0
    name_tokens = tokens(name)
    matched = sum(
        1
        for q in query_tokens
        if any(q in n or n in q for n in name_tokens)
    )
    return matched / len(query_tokens)


def mentions(fragment: str, text: str) -> bool:
    """True when the normalised fragment appears in text on word boundaries."""
    needle = normalize(fragment)
    haystack = normalize(text)
    if not needle or not haystack:
        return False
    return re.search(rf"\b{re.escape(needle)}\b", haystack) is not None
