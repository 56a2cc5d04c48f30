"""Split a search phrase into a business name and an optional location.

The fallback word-count heuristic deliberately assumes a trailing location:
"thai kitchen seattle wa" becomes business="thai kitchen", location="seattle wa",
and a two-word query such as "cafe landwer" becomes business="cafe",
location="landwer". Store rows are admitted by similarity to the full query
and ranked against the business fragment, so do not change the split without
re-checking search ordering.
"""

import logging

from placefinder.matching.text import normalize
from placefinder.models import BUSINESS, BUSINESS_LOCATION_PROPOSAL, QueryAnalysis

logger = logging.getLogger(__name__)

LOCATION_CONNECTORS = (" in ", " at ", " near ", " on ", " by ", " around ")
TRAILING_LOCATION_WORDS = 2


def _proposal(business: str, location: str) -> QueryAnalysis:
    return QueryAnalysis(type=BUSINESS_LOCATION_PROPOSAL, business_name=business, location=location)


def analyze(query: str) -> QueryAnalysis:
    normalized = normalize(query)

    for connector in LOCATION_CONNECTORS:
        parts = normalized.split(connector)
        if len(parts) == 2 and parts[0].strip() and parts[1].strip():
            return _proposal(parts[0].strip(), parts[1].strip())

    # normalize() drops commas, so the comma split works on the raw text.
    if query and "," in query:
        head, _, tail = query.rpartition(",")
        business, location = normalize(head), normalize(tail)
        if business and location:
            return _proposal(business, location)

    words = normalized.split(" ") if normalized else []
    if len(words) > TRAILING_LOCATION_WORDS:
        return _proposal(
            " ".join(words[:-TRAILING_LOCATION_WORDS]),
            " ".join(words[-TRAILING_LOCATION_WORDS:]),
        )
    if len(words) == 2:
        return _proposal(words[0], words[1])

    logger.debug("Query %r classified as plain business", query)
    return QueryAnalysis(type=BUSINESS, business_name=normalized)
