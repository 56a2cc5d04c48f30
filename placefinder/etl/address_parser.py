"""Free-text address to structured fields.

US addresses are tagged with ``usaddress``; anything else, or a US parse that
fails validation, goes through the country pattern tables instead.

``parse_address`` never raises: empty input, partial parses and internal
faults all come back as ``AddressParseResult(success=False, ...)`` with the
caller's raw text in ``data.full_address``.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

import usaddress

from placefinder.etl.country_detection import (
    COUNTRY_IDENTIFIERS,
    COUNTRY_PATTERNS,
    VALID_US_STATES,
    detect_country,
)
from placefinder.models import AddressFields, AddressParseResult

logger = logging.getLogger(__name__)

EMPTY_ERROR = "Address cannot be empty."
PARTIAL_ERROR = "Partially parsed. Please complete the address fields."
FAILED_ERROR = "Could not parse address automatically. Please fill in the fields manually."

# usaddress label -> component key; labels sharing a key are joined in text order
USADDRESS_LABELS = {
    "AddressNumberPrefix": "number",
    "AddressNumber": "number",
    "AddressNumberSuffix": "number",
    "StreetNamePreDirectional": "prefix",
    "StreetNamePreModifier": "street",
    "StreetNamePreType": "street",
    "StreetName": "street",
    "StreetNamePostType": "type",
    "StreetNamePostDirectional": "suffix",
    "StreetNamePostModifier": "suffix",
    "OccupancyType": "unit",
    "OccupancyIdentifier": "unit",
    "PlaceName": "city",
    "StateName": "state",
    "ZipCode": "zip",
}
STREET_KEYS = ("number", "prefix", "street", "type", "suffix")

STREET_TYPES = (
    "street", "st", "avenue", "ave", "av", "road", "rd", "boulevard", "blvd", "drive", "dr",
    "lane", "ln", "court", "ct", "place", "pl", "parkway", "pkwy", "way", "terrace", "ter",
    "highway", "hwy", "circle", "cir", "square", "sq", "trail", "trl", "plaza", "plz",
    "alley", "aly", "loop", "crescent", "cres", "close",
)
DIRECTIONS = (
    "northeast", "northwest", "southeast", "southwest", "north", "south", "east", "west",
    "ne", "nw", "se", "sw", "n", "s", "e", "w",
)

_STREET_THEN_CITY = re.compile(
    rf"^(?P<street>.*?\b(?:{'|'.join(STREET_TYPES)})\.?(?:\s+(?:{'|'.join(DIRECTIONS)})\.?)?)\s+(?P<city>\D.*)$",
    re.I,
)
_US_COUNTRY_TAIL = re.compile(r"[,\s]*\b(united states of america|united states|usa|u\.s\.a\.)\s*$", re.I)
_UK_POSTCODE_AS_STATE = re.compile(r"^[A-Z][0-9][A-Z0-9]?$")
_WHITESPACE = re.compile(r"\s+")

Components = Dict[str, Optional[str]]


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text.replace("\r", " ").replace("\n", " ")).strip()


def _tidy_commas(text: str) -> str:
    text = re.sub(r"\s+,", ",", text)
    text = re.sub(r",(\s*,)+", ",", text)
    return text.strip().strip(",").strip()


def _split_parts(text: str) -> List[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def tag_us_address(text: str) -> Optional[Components]:
    """Components of a US address as tagged by usaddress, or None when it cannot label it."""
    try:
        tagged, address_type = usaddress.tag(text)
    except usaddress.RepeatedLabelError as exc:
        logger.debug("usaddress could not label %r: %s", text, exc)
        return None
    logger.debug("usaddress tagged %r as %s: %s", text, address_type, dict(tagged))

    components: Components = {key: None for key in set(USADDRESS_LABELS.values())}
    for label, value in tagged.items():
        key = USADDRESS_LABELS.get(label)
        value = value.strip(" ,")
        if key is None or not value:
            continue
        components[key] = f"{components[key]} {value}" if components[key] else value
    if components["state"]:
        components["state"] = components["state"].rstrip(".").upper()
    return components


def assemble_street(parts: Components) -> str:
    return " ".join(parts[key] for key in STREET_KEYS if parts.get(key))


def strip_leading_name(address: str, name: Optional[str]) -> str:
    """Remove a leading repeat of the business name and its separator."""
    if not address or not name or not name.strip():
        return address or ""
    return re.sub(rf"^\s*{re.escape(name.strip())}[,\s]*", "", address, flags=re.I)


def _looks_like_street(part: str) -> bool:
    return bool(re.search(r"[^\W\d_]", part)) and bool(re.match(r"^\d", part) or re.search(r"\d+[a-z]?$", part, re.I))


def _pick_street(parts: List[str]) -> Tuple[Optional[str], List[str]]:
    for index, part in enumerate(parts):
        if _looks_like_street(part):
            return part, parts[index + 1:]
    if len(parts) > 1:
        return parts[0], parts[1:]
    return None, parts


def _split_street_and_city(segment: str) -> Tuple[str, Optional[str]]:
    match = _STREET_THEN_CITY.match(segment)
    if match:
        return match.group("street").strip(), match.group("city").strip()
    return segment, None


def validate_us_components(components: Components) -> bool:
    """Reject a US parse whose state is not a US state or whose text names another country."""
    state = components.get("state")
    if state and state.upper() not in VALID_US_STATES:
        logger.debug("Invalid US state detected: %s", state)
        return False
    # Two-letter state codes collide with foreign term lists (CA, IN, DE), so only street and city are checked.
    text = " ".join(filter(None, (assemble_street(components), components.get("city"))))
    for country, patterns in COUNTRY_PATTERNS.items():
        if patterns["terms"].search(text):
            logger.debug("International terms for %s found in US parse: %r", country, text)
            return False
    if state and _UK_POSTCODE_AS_STATE.match(state):
        return False
    return True


def _parse_international(cleaned: str, country: str, original: str) -> AddressParseResult:
    text = cleaned
    identifier = COUNTRY_IDENTIFIERS.get(country)
    if identifier is not None:
        text = _tidy_commas(identifier.sub("", cleaned))

    parts = _split_parts(text)
    street_line, regions = _pick_street(parts)
    if street_line is None and parts:
        street_line, regions = parts[0], []
    if street_line and not regions:
        street_line, city_guess = _split_street_and_city(street_line)
        regions = [city_guess] if city_guess else []
    if not street_line:
        return AddressParseResult(
            success=False,
            data=AddressFields(full_address=original, country=country),
            error=FAILED_ERROR,
        )

    patterns = COUNTRY_PATTERNS.get(country, {})
    remaining = " ".join(regions)
    postal_code = state = city = None

    postal_pattern = patterns.get("postal_code")
    if postal_pattern is None and country == "USA":
        postal_pattern = re.compile(r"\b\d{5}(?:-\d{4})?\b")
    if postal_pattern is not None:
        postal = postal_pattern.search(remaining)
        if postal:
            postal_code = postal.group(0).strip().upper()
            remaining = (remaining[:postal.start()] + remaining[postal.end():]).strip()

    state_pattern = patterns.get("state")
    if state_pattern is not None:
        found = state_pattern.search(remaining)
        if found:
            state = found.group(0).strip().upper()
            remaining = (remaining[:found.start()] + remaining[found.end():]).strip()

    remaining = _WHITESPACE.sub(" ", remaining).strip(" ,")
    if remaining:
        city = remaining

    street = _WHITESPACE.sub(" ", street_line).strip(" ,")
    data = AddressFields(
        full_address=original,
        address=street or None,
        city=city,
        state=state,
        zip_code=postal_code,
        country=country,
    )
    success = bool(street and (city or state or postal_code))
    return AddressParseResult(success=success, data=data, error=None if success else PARTIAL_ERROR)


def parse_address(raw: Optional[str], default_country: Optional[str] = None) -> AddressParseResult:
    if not raw or not raw.strip():
        return AddressParseResult(success=False, data=AddressFields(full_address=raw), error=EMPTY_ERROR)

    country = None
    try:
        cleaned = _collapse(raw)
        country = detect_country(cleaned, default_country)
        if country != "USA":
            logger.debug("Detected %s address, using international rules", country)
            return _parse_international(cleaned, country, raw)

        components = tag_us_address(_US_COUNTRY_TAIL.sub("", cleaned))
        street = assemble_street(components) if components else ""
        if components and street and components.get("city") and components.get("state"):
            if validate_us_components(components):
                return AddressParseResult(
                    success=True,
                    data=AddressFields(
                        full_address=raw,
                        address=street,
                        city=components["city"],
                        state=components["state"],
                        zip_code=components.get("zip"),
                        country="USA",
                    ),
                )
            logger.debug("US validation failed for %r, falling back to international rules", cleaned)
        return _parse_international(cleaned, country, raw)
    except Exception:
        logger.warning("Address parsing failed for %r", raw, exc_info=True)
        return AddressParseResult(
            success=False,
            data=AddressFields(full_address=raw, country=country),
            error=FAILED_ERROR,
        )


def validate_parsed_address(fields: AddressFields) -> Dict[str, str]:
    """Field errors for a user-completed address; empty when valid."""
    errors: Dict[str, str] = {}
    if not (fields.address or "").strip():
        errors["address"] = "Street address is required."
    if not (fields.city or "").strip():
        errors["city"] = "City is required."
    return errors


def format_address_for_display(fields: AddressFields) -> str:
    head = ", ".join(part for part in (fields.address, fields.city, fields.state) if part)
    return f"{head} {fields.zip_code}" if fields.zip_code else head
