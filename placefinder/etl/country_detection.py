"""Best-effort country guess for a free-text address.

This is a heuristic classifier, not an authority: each country collects points
from regex evidence and the best score wins, with the home country as default.
The weights below are the single source of truth for the test fixtures.
"""

import logging
import re
from typing import Dict, Optional

logger = logging.getLogger(__name__)

UNIQUE_POSTAL_WEIGHT = 10
INDIA_POSTAL_WITH_TERMS_WEIGHT = 10
INDIA_TRAILING_POSTAL_WEIGHT = 5
ISRAEL_TRAILING_POSTAL_WEIGHT = 8
AUSTRALIA_POSTAL_WEIGHT = 5
TERMS_WEIGHT = 5
US_STATE_WEIGHT = 8
US_STATE_MIN_INDEX = 10
US_TERMS_WEIGHT = 5
US_FIVE_DIGIT_WEIGHT = 3

COUNTRY_PATTERNS: Dict[str, Dict[str, "re.Pattern[str]"]] = {
    "UK": {
        "postal_code": re.compile(r"\b[A-Z]{1,2}[0-9][A-Z0-9]?\s*[0-9][A-Z]{2}\b", re.I),
        "terms": re.compile(
            r"\b(london|manchester|birmingham|glasgow|liverpool|leeds|sheffield|edinburgh|bristol|cardiff|"
            r"leicester|coventry|nottingham|newcastle|belfast|portsmouth|southampton|wolverhampton|plymouth|"
            r"reading|united kingdom|uk|england|scotland|wales|northern ireland|britain|gb)\b",
            re.I,
        ),
    },
    "CANADA": {
        "postal_code": re.compile(r"\b[A-Z][0-9][A-Z]\s*[0-9][A-Z][0-9]\b", re.I),
        "state": re.compile(r"\b(ON|QC|BC|AB|MB|SK|NS|NB|PE|NL|YT|NT|NU)\b", re.I),
        "terms": re.compile(
            r"\b(toronto|montreal|vancouver|calgary|ottawa|edmonton|winnipeg|quebec|hamilton|kitchener|london|"
            r"victoria|halifax|oshawa|windsor|saskatoon|regina|sherbrooke|barrie|ontario|british columbia|"
            r"alberta|manitoba|saskatchewan|nova scotia|newfoundland|new brunswick|prince edward island|canada|"
            r"ca|qc|on|bc|ab|mb|sk|ns|nb|pe|nl)\b",
            re.I,
        ),
    },
    "ISRAEL": {
        "postal_code": re.compile(r"\b[0-9]{7}\b"),
        "terms": re.compile(
            r"\b(tel aviv|jerusalem|haifa|netanya|ashdod|rishon lezion|petah tikva|beer sheva|holon|bnei brak|"
            r"ramat gan|rehovot|bat yam|herzliya|kfar saba|hadera|modiin|nazareth|ramla|raanana|israel|il|yafo|jaffa)\b",
            re.I,
        ),
    },
    "AUSTRALIA": {
        "postal_code": re.compile(r"\b[0-9]{4}\b"),
        "state": re.compile(r"\b(NSW|VIC|QLD|WA|SA|TAS|ACT|NT)\b", re.I),
        "terms": re.compile(
            r"\b(sydney|melbourne|brisbane|perth|adelaide|gold coast|newcastle|canberra|wollongong|geelong|hobart|"
            r"townsville|cairns|toowoomba|darwin|ballarat|bendigo|launceston|australia|au|nsw|vic|qld|wa|sa|tas|"
            r"act|nt|new south wales|victoria|queensland|western australia|south australia|tasmania)\b",
            re.I,
        ),
    },
    "GERMANY": {
        "postal_code": re.compile(r"\b[0-9]{5}\b"),
        "terms": re.compile(
            r"\b(berlin|hamburg|munich|münchen|cologne|köln|frankfurt|stuttgart|düsseldorf|dortmund|essen|leipzig|"
            r"bremen|dresden|hanover|hannover|nuremberg|nürnberg|duisburg|bochum|wuppertal|bielefeld|bonn|münster|"
            r"karlsruhe|mannheim|augsburg|wiesbaden|germany|deutschland|de)\b",
            re.I,
        ),
    },
    "FRANCE": {
        "postal_code": re.compile(r"\b[0-9]{5}\b"),
        "terms": re.compile(
            r"\b(paris|marseille|lyon|toulouse|nice|nantes|strasbourg|montpellier|bordeaux|lille|rennes|reims|"
            r"le havre|saint-étienne|toulon|grenoble|dijon|angers|nîmes|villeurbanne|clermont-ferrand|le mans|"
            r"aix-en-provence|brest|limoges|tours|amiens|france|fr)\b",
            re.I,
        ),
    },
    "ITALY": {
        "postal_code": re.compile(r"\b[0-9]{5}\b"),
        "terms": re.compile(
            r"\b(rome|roma|milan|milano|naples|napoli|turin|torino|palermo|genoa|genova|bologna|florence|firenze|"
            r"bari|catania|venice|venezia|verona|messina|padua|padova|trieste|brescia|parma|modena|"
            r"reggio calabria|reggio emilia|perugia|livorno|ravenna|italy|italia|it)\b",
            re.I,
        ),
    },
    "MEXICO": {
        "postal_code": re.compile(r"\b[0-9]{5}\b"),
        "terms": re.compile(
            r"\b(mexico city|ciudad de méxico|cdmx|guadalajara|monterrey|puebla|tijuana|león|juárez|ciudad juarez|"
            r"zapopan|mérida|merida|san luis potosí|san luis potosi|aguascalientes|hermosillo|saltillo|mexicali|"
            r"culiacán|culiacan|querétaro|queretaro|morelia|chihuahua|durango|toluca|mexico|méxico|mx)\b",
            re.I,
        ),
    },
    "INDIA": {
        "postal_code": re.compile(r"\b[0-9]{6}\b|\b[0-9]{3}\s[0-9]{3}\b"),
        "terms": re.compile(
            r"\b(mumbai|bombay|delhi|new delhi|bangalore|bengaluru|hyderabad|chennai|madras|kolkata|calcutta|pune|"
            r"ahmedabad|surat|jaipur|lucknow|kanpur|nagpur|indore|bhopal|visakhapatnam|vizag|patna|vadodara|"
            r"ghaziabad|ludhiana|agra|nashik|faridabad|meerut|rajkot|varanasi|srinagar|aurangabad|amritsar|"
            r"navi mumbai|allahabad|prayagraj|ranchi|howrah|coimbatore|jabalpur|gwalior|vijayawada|jodhpur|raipur|"
            r"kota|guwahati|chandigarh|gurgaon|gurugram|noida|kochi|cochin|bhubaneswar|maharashtra|karnataka|"
            r"tamil nadu|west bengal|gujarat|rajasthan|uttar pradesh|madhya pradesh|andhra pradesh|bihar|"
            r"telangana|haryana|assam|odisha|kerala|jharkhand|punjab|india|in|bharat)\b",
            re.I,
        ),
    },
}

COUNTRY_IDENTIFIERS: Dict[str, "re.Pattern[str]"] = {
    "USA": re.compile(r"\b(united states of america|united states|usa|u\.s\.a\.|us)\b", re.I),
    "UK": re.compile(r"\b(united kingdom|uk|england|scotland|wales|northern ireland|britain|gb)\b", re.I),
    "CANADA": re.compile(r"\b(canada|ca)\b", re.I),
    "ISRAEL": re.compile(r"\b(israel|il)\b", re.I),
    "AUSTRALIA": re.compile(r"\b(australia|au)\b", re.I),
    "GERMANY": re.compile(r"\b(germany|deutschland|de)\b", re.I),
    "FRANCE": re.compile(r"\b(france|fr)\b", re.I),
    "ITALY": re.compile(r"\b(italy|italia|it)\b", re.I),
    "MEXICO": re.compile(r"\b(mexico|méxico|mx)\b", re.I),
    "INDIA": re.compile(r"\b(india|in|bharat)\b", re.I),
}

VALID_US_STATES = frozenset(
    """AL AK AZ AR CA CO CT DE DC FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE NV NH NJ NM
    NY NC ND OH OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY""".split()
)

US_STATE_ABBR = re.compile(r"\b(" + "|".join(sorted(VALID_US_STATES)) + r")\b")
US_ZIP = re.compile(r"\b[0-9]{5}(?:-[0-9]{4})?\b")
US_TERMS = re.compile(
    r"\b(united states|usa|america|washington|new york|los angeles|chicago|houston|philadelphia|phoenix|"
    r"san antonio|san diego|dallas|san jose|austin|jacksonville|san francisco|columbus|charlotte|fort worth|"
    r"detroit|el paso|memphis|seattle|denver|boston|nashville|baltimore|oklahoma city|louisville|portland|"
    r"las vegas|milwaukee|albuquerque|tucson|fresno|sacramento|kansas city|long beach|mesa|atlanta|"
    r"colorado springs|virginia beach|raleigh|omaha|miami|oakland|minneapolis|tulsa|wichita|new orleans)\b",
    re.I,
)
_FIVE_DIGITS = re.compile(r"\b[0-9]{5}\b")
_TRAILING_ISRAEL_CODE = re.compile(r"[0-9]{7}(\s*(israel|il))?\s*$", re.I)

COUNTRIES = ("USA",) + tuple(COUNTRY_PATTERNS)


def score_countries(address: str) -> Dict[str, int]:
    text = (address or "").strip()
    upper = text.upper()
    scores = {country: 0 for country in COUNTRIES}
    if not text:
        return scores

    if COUNTRY_PATTERNS["UK"]["postal_code"].search(text):
        scores["UK"] += UNIQUE_POSTAL_WEIGHT
    if COUNTRY_PATTERNS["CANADA"]["postal_code"].search(text):
        scores["CANADA"] += UNIQUE_POSTAL_WEIGHT

    six_digit = COUNTRY_PATTERNS["INDIA"]["postal_code"].search(text)
    if six_digit:
        if COUNTRY_PATTERNS["INDIA"]["terms"].search(text):
            scores["INDIA"] += INDIA_POSTAL_WITH_TERMS_WEIGHT
        elif text.endswith(six_digit.group(0)):
            scores["INDIA"] += INDIA_TRAILING_POSTAL_WEIGHT

    seven_digit = COUNTRY_PATTERNS["ISRAEL"]["postal_code"].search(text)
    if seven_digit:
        start = max(0, seven_digit.start() - 20)
        surrounding = text[start:seven_digit.end() + 20]
        if _TRAILING_ISRAEL_CODE.search(surrounding):
            scores["ISRAEL"] += ISRAEL_TRAILING_POSTAL_WEIGHT

    if COUNTRY_PATTERNS["AUSTRALIA"]["postal_code"].search(text) and COUNTRY_PATTERNS["AUSTRALIA"]["terms"].search(text):
        scores["AUSTRALIA"] += AUSTRALIA_POSTAL_WEIGHT

    for country, patterns in COUNTRY_PATTERNS.items():
        if patterns["terms"].search(text):
            scores[country] += TERMS_WEIGHT

    state_match = US_STATE_ABBR.search(upper)
    if state_match and state_match.start() > US_STATE_MIN_INDEX:
        scores["USA"] += US_STATE_WEIGHT
    if US_TERMS.search(text):
        scores["USA"] += US_TERMS_WEIGHT

    if _FIVE_DIGITS.search(text) and not seven_digit:
        european = any(COUNTRY_PATTERNS[c]["terms"].search(text) for c in ("FRANCE", "GERMANY", "ITALY"))
        mexican = COUNTRY_PATTERNS["MEXICO"]["terms"].search(text)
        if not european and not mexican:
            scores["USA"] += US_FIVE_DIGIT_WEIGHT
    return scores


def detect_country(address: str, default: Optional[str] = None) -> str:
    """Highest scoring country; the home country when nothing scores."""
    if default is None:
        from placefinder.core.config import get_settings

        default = get_settings().home_country
    scores = score_countries(address)
    detected, best = default, 0
    for country, score in scores.items():
        if score > best:
            detected, best = country, score
    logger.debug("Country detection scores for %r: %s -> %s", address, scores, detected)
    return detected
