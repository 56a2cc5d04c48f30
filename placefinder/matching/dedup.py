"""Decide whether two restaurant records describe the same place.

``similarity`` is asymmetric, so every call site passes the record already
accepted (store row, or provider hit kept earlier) first and the incoming
record second.
"""

import logging
from typing import Callable, Iterable, List, Optional

from placefinder.matching.text import (
    SIMILARITY_LOOSE_NAME,
    SIMILARITY_NAME_ONLY,
    SIMILARITY_PROVIDER_ADDRESS,
    SIMILARITY_STORE_PROVIDER_ADDRESS,
    SIMILARITY_STORE_ROW_ADDRESS,
    SIMILARITY_STRICT_NAME,
    similarity,
)
from placefinder.models import STORE_SOURCE, PlaceCandidate

logger = logging.getLogger(__name__)

STORE_PROVIDER_ADDRESS_THRESHOLD = SIMILARITY_STORE_PROVIDER_ADDRESS
PROVIDER_PROVIDER_ADDRESS_THRESHOLD = SIMILARITY_PROVIDER_ADDRESS
STORE_ROW_ADDRESS_THRESHOLD = SIMILARITY_STORE_ROW_ADDRESS
NAME_THRESHOLD = SIMILARITY_STRICT_NAME
LOOSE_NAME_THRESHOLD = SIMILARITY_LOOSE_NAME
NAME_ONLY_THRESHOLD = SIMILARITY_NAME_ONLY


def is_duplicate(
    existing: PlaceCandidate,
    incoming: PlaceCandidate,
    address_threshold: int = STORE_PROVIDER_ADDRESS_THRESHOLD,
    name_threshold: int = NAME_THRESHOLD,
) -> bool:
    name_score = similarity(existing.name, incoming.name)
    if name_score < name_threshold:
        return False

    existing_address = existing.address_text()
    incoming_address = incoming.address_text()
    if existing_address and incoming_address:
        return similarity(existing_address, incoming_address) > address_threshold

    return name_score > NAME_ONLY_THRESHOLD


def find_duplicate(
    incoming: PlaceCandidate,
    pool: Iterable[PlaceCandidate],
    address_threshold: int = STORE_PROVIDER_ADDRESS_THRESHOLD,
) -> Optional[PlaceCandidate]:
    for existing in pool:
        if is_duplicate(existing, incoming, address_threshold=address_threshold):
            return existing
    return None


def find_store_duplicate(
    candidate: PlaceCandidate,
    rows: Iterable[PlaceCandidate],
    lookup_by_place_id: Optional[Callable[[str], List[PlaceCandidate]]] = None,
) -> Optional[PlaceCandidate]:
    """Store row that ``candidate`` duplicates, checked by provider id then by text.

    The text pass uses the looser name bar since no exact id match settled it.
    """
    place_id = candidate.provider_place_id or (None if candidate.source == STORE_SOURCE else candidate.id)
    if place_id and lookup_by_place_id is not None:
        matches = lookup_by_place_id(place_id)
        if matches:
            return matches[0]

    for row in rows:
        if place_id and row.provider_place_id == place_id:
            return row
        if is_duplicate(
            row,
            candidate,
            address_threshold=STORE_ROW_ADDRESS_THRESHOLD,
            name_threshold=LOOSE_NAME_THRESHOLD,
        ):
            return row
    return None


def richer_address(current: PlaceCandidate, challenger: PlaceCandidate) -> PlaceCandidate:
    """Keep whichever of two duplicate provider hits carries more address data."""
    if challenger.street and not current.street:
        return challenger
    if len(challenger.full_address or "") > len(current.full_address or ""):
        return challenger
    return current


def dedupe_provider_results(
    candidates: Iterable[PlaceCandidate],
    store_matches: Iterable[PlaceCandidate] = (),
) -> List[PlaceCandidate]:
    """Drop provider hits that duplicate a store match, then collapse provider-side duplicates."""
    store_pool = list(store_matches)
    unique: List[PlaceCandidate] = []
    for candidate in candidates:
        if find_duplicate(candidate, store_pool, STORE_PROVIDER_ADDRESS_THRESHOLD) is not None:
            logger.debug("Dropping provider hit %s: duplicate of a store row", candidate.name)
            continue

        for index, kept in enumerate(unique):
            if is_duplicate(kept, candidate, address_threshold=PROVIDER_PROVIDER_ADDRESS_THRESHOLD):
                unique[index] = richer_address(kept, candidate)
                break
        else:
            unique.append(candidate)
    return unique
