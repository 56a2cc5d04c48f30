"""Utilities for transforming Geoapify features into place candidates."""

import dataclasses
import logging
from typing import Any, Dict, Iterable, List, Optional

from placefinder.etl.address_parser import parse_address, strip_leading_name
from placefinder.matching.text import SIMILARITY_NAME_IS_ADDRESS, similarity
from placefinder.models import PlaceCandidate, ProviderId

logger = logging.getLogger(__name__)


def _contact(props: Dict[str, Any], field: str) -> Optional[str]:
    contact = props.get("contact") if isinstance(props.get("contact"), dict) else {}
    return props.get(field) or contact.get(field) or None


def _datasource(props: Dict[str, Any]) -> Optional[str]:
    datasource = props.get("datasource")
    if isinstance(datasource, dict):
        return datasource.get("sourcename")
    return None


def _coordinate(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def feature_to_candidate(feature: Dict[str, Any]) -> Optional[PlaceCandidate]:
    props = feature.get("properties") or {}
    place_id = props.get("place_id")
    name = (props.get("name") or "").strip()
    if not place_id or not name:
        return None

    country_code = props.get("country_code")
    return PlaceCandidate(
        identity=ProviderId(str(place_id)),
        name=name,
        street=props.get("address_line1") or None,
        city=props.get("city") or None,
        state=props.get("state_code") or props.get("state") or None,
        postal_code=props.get("postcode") or None,
        country=country_code.upper() if country_code else props.get("country") or None,
        full_address=props.get("formatted") or None,
        latitude=_coordinate(props.get("lat")),
        longitude=_coordinate(props.get("lon")),
        provider_place_id=str(place_id),
        datasource=_datasource(props),
        raw={
            "website": _contact(props, "website"),
            "phone": _contact(props, "phone"),
            "categories": list(props.get("categories") or []),
            "address_line2": props.get("address_line2"),
        },
    )


def features_to_candidates(features: Iterable[Dict[str, Any]]) -> List[PlaceCandidate]:
    candidates = []
    for feature in features:
        candidate = feature_to_candidate(feature)
        if candidate is None:
            logger.debug("Skipping provider feature without place id or name")
            continue
        candidates.append(candidate)
    return candidates


def unique_by_place_id(candidates: Iterable[PlaceCandidate]) -> List[PlaceCandidate]:
    seen = set()
    unique = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        unique.append(candidate)
    return unique


def clean_provider_address(candidate: PlaceCandidate) -> PlaceCandidate:
    """Replace a street line that merely repeats the name with one parsed from the secondary address."""
    street = candidate.street
    city = candidate.city
    if street and similarity(street, candidate.name) > SIMILARITY_NAME_IS_ADDRESS:
        street = None

    if not street:
        source = candidate.raw.get("address_line2") or candidate.full_address
        if source:
            parsed = parse_address(strip_leading_name(source, candidate.name))
            street = parsed.data.address or street
            city = parsed.data.city or city

    if street == candidate.street and city == candidate.city:
        return candidate
    return dataclasses.replace(candidate, street=street, city=city)


def apply_parsed_address(candidate: PlaceCandidate) -> PlaceCandidate:
    """Fill address fields from the formatted address, keeping provider values the parser missed."""
    source = candidate.full_address or candidate.street
    if not source:
        return candidate
    parsed = parse_address(strip_leading_name(source, candidate.name))
    fields = parsed.data
    return dataclasses.replace(
        candidate,
        street=fields.address or candidate.street,
        city=fields.city or candidate.city,
        state=fields.state or candidate.state,
        postal_code=fields.zip_code or candidate.postal_code,
        country=candidate.country or fields.country,
    )
