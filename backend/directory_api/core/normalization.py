"""Normalization helpers for slugs, addresses and opening hours"""

import logging
import re
import secrets
import string
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

SLUG_SUFFIX_LENGTH = 6
_SLUG_ALPHABET = string.ascii_lowercase + string.digits

POSTAL_CODE_RE = re.compile(r"[A-Za-z]\d[A-Za-z]\s?\d[A-Za-z]\d")

CANADIAN_PROVINCES: Dict[str, str] = {
    "ON": "ON", "Ontario": "ON",
    "BC": "BC", "British Columbia": "BC",
    "AB": "AB", "Alberta": "AB",
    "SK": "SK", "Saskatchewan": "SK",
    "MB": "MB", "Manitoba": "MB",
    "QC": "QC", "Quebec": "QC",
    "NB": "NB", "New Brunswick": "NB",
    "NS": "NS", "Nova Scotia": "NS",
    "PE": "PE", "Prince Edward Island": "PE",
    "NL": "NL", "Newfoundland and Labrador": "NL",
    "YT": "YT", "Yukon": "YT",
    "NT": "NT", "Northwest Territories": "NT",
    "NU": "NU", "Nunavut": "NU",
}

# Longest names first so "Newfoundland and Labrador" wins over a stray "NL"
_PROVINCE_KEYS = sorted(CANADIAN_PROVINCES, key=len, reverse=True)

_KNOWN_COUNTRIES = {"canada", "usa", "united states"}

# "Monday: 9:00 AM – 5:00 PM"
_WEEKDAY_LINE_RE = re.compile(r"^(\w+):\s*(.+)$")
_TIME_RANGE_RE = re.compile(
    r"(\d{1,2}(?::\d{2})?\s*(?:AM|PM)?)\s*[–\-−—]\s*(\d{1,2}(?::\d{2})?\s*(?:AM|PM)?)",
    re.IGNORECASE,
)
_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*(AM|PM)?$")

# Google uses narrow no-break and thin spaces around AM/PM
_SPACE_VARIANTS = str.maketrans({"\u202f": " ", "\u2009": " ", "\u00a0": " "})


# ============================================================================
# Slugs
# ============================================================================

def generate_slug(text: str) -> str:
    """
    Generate a URL-safe slug.

    >>> generate_slug("Joe's Pizza & Grill!")
    'joes-pizza-grill'
    """
    if not text:
        return ""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def create_unique_slug(base_slug: str) -> str:
    """Append a random 6-character suffix to a slug"""
    suffix = "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(SLUG_SUFFIX_LENGTH))
    return f"{base_slug}-{suffix}" if base_slug else suffix


def format_type_name(type_name: str) -> str:
    """meal_delivery -> Meal Delivery"""
    return " ".join(word[:1].upper() + word[1:] for word in type_name.split("_") if word)


# ============================================================================
# Addresses
# ============================================================================

def _empty_address() -> Dict[str, str]:
    return {"street": "", "city": "", "province": "", "postalCode": "", "country": ""}


def parse_address(
    address_components: Optional[Iterable[Mapping[str, Any]]],
    formatted_address: Optional[str],
) -> Dict[str, str]:
    """
    Build an address from Google address components.

    Falls back to parsing the formatted address string when no components
    are available.
    """
    components = list(address_components or [])
    if not components:
        return parse_address_from_string(formatted_address or "")

    address = _empty_address()
    street_number = ""
    route = ""

    for component in components:
        types = component.get("types") or []
        long_name = component.get("long_name") or ""

        if "street_number" in types:
            street_number = long_name
        elif "route" in types:
            route = long_name
        elif "locality" in types or "sublocality" in types:
            if not address["city"]:
                address["city"] = long_name
        elif "administrative_area_level_1" in types:
            address["province"] = component.get("short_name") or long_name
        elif "postal_code" in types:
            address["postalCode"] = long_name
        elif "country" in types:
            address["country"] = long_name

    address["street"] = " ".join(part for part in (street_number, route) if part).strip()

    if not address["street"] and formatted_address:
        address["street"] = formatted_address.split(",")[0].strip()

    return address


def _match_province(part: str) -> Optional[str]:
    for key in _PROVINCE_KEYS:
        if re.search(rf"\b{re.escape(key)}\b", part):
            return key
    return None


def _strip_province(part: str, key: str) -> str:
    """Remove the first whole-word province key, leaving city names intact"""
    return re.sub(rf"\b{re.escape(key)}\b", "", part, count=1).strip()


def parse_address_from_string(formatted_address: str) -> Dict[str, str]:
    """
    Parse a Canadian style formatted address.

    "123 Main St, Kingston, ON K7L 1A1, Canada" gives street "123 Main St",
    city "Kingston", province "ON", postal code "K7L 1A1", country "Canada".
    """
    address = _empty_address()
    if not formatted_address or not formatted_address.strip():
        return address

    parts = [p.strip() for p in formatted_address.split(",")]
    address["street"] = parts[0]

    for i, part in enumerate(parts[1:], start=1):
        if not part:
            continue

        postal_match = POSTAL_CODE_RE.search(part)
        if postal_match:
            address["postalCode"] = postal_match.group(0).upper()
            before_postal = POSTAL_CODE_RE.sub("", part).strip()
            if before_postal in CANADIAN_PROVINCES:
                address["province"] = CANADIAN_PROVINCES[before_postal]
            elif before_postal:
                province_key = _match_province(before_postal)
                if province_key:
                    address["province"] = CANADIAN_PROVINCES[province_key]
                    city_part = _strip_province(before_postal, province_key)
                    if city_part and not address["city"]:
                        address["city"] = city_part
            continue

        if i == len(parts) - 1 and part.lower() in _KNOWN_COUNTRIES:
            address["country"] = part
            continue

        province_key = _match_province(part)
        if province_key:
            address["province"] = CANADIAN_PROVINCES[province_key]
            city_part = _strip_province(part, province_key)
            if city_part and not address["city"]:
                address["city"] = city_part
            continue

        if not address["city"]:
            address["city"] = part

    if not address["country"]:
        address["country"] = "Canada"

    return address


# ============================================================================
# Opening hours
# ============================================================================

def parse_time_string(time_str: Optional[str]) -> Optional[str]:
    """Parse "9 AM", "9:00 PM" or "21:00" into zero-padded HH:MM"""
    if not time_str:
        return None

    cleaned = time_str.translate(_SPACE_VARIANTS).strip().upper()
    match = _TIME_RE.match(cleaned)
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2)) if match.group(2) else 0
    period = match.group(3)

    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return None

    return f"{hour:02d}:{minute:02d}"


def format_hhmm(time: Optional[str]) -> str:
    """Format an HHMM period time as HH:MM"""
    if not time or len(time) < 4:
        return "00:00"
    return f"{time[:2]}:{time[2:4]}"


def parse_hours_from_weekday_text(weekday_text: Iterable[str]) -> Dict[str, Dict[str, str]]:
    hours: Dict[str, Dict[str, str]] = {}

    for line in weekday_text:
        match = _WEEKDAY_LINE_RE.match((line or "").translate(_SPACE_VARIANTS).strip())
        if not match:
            continue

        day = match.group(1).lower()
        time_str = match.group(2).strip()
        lowered = time_str.lower()

        if day not in DAY_NAMES or "closed" in lowered:
            continue

        if "open 24 hours" in lowered or lowered == "24 hours":
            hours[day] = {"open": "00:00", "close": "23:59"}
            continue

        range_match = _TIME_RANGE_RE.search(time_str)
        if not range_match:
            logger.debug(f"Unrecognized hours for {day}: {time_str!r}")
            continue

        open_time = parse_time_string(range_match.group(1))
        close_time = parse_time_string(range_match.group(2))
        if open_time and close_time:
            hours[day] = {"open": open_time, "close": close_time}

    return hours


def parse_hours_from_periods(periods: Iterable[Mapping[str, Any]]) -> Dict[str, Dict[str, str]]:
    hours: Dict[str, Dict[str, str]] = {}

    for period in periods:
        open_info = period.get("open") or {}
        day_index = open_info.get("day")
        if not isinstance(day_index, int) or not 0 <= day_index < len(DAY_NAMES):
            continue

        close_info = period.get("close")
        hours[DAY_NAMES[day_index]] = {
            "open": format_hhmm(open_info.get("time")),
            "close": format_hhmm(close_info.get("time")) if close_info else "23:59",
        }

    return hours


def parse_hours(opening_hours: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Dict[str, str]]]:
    """
    Parse Google opening hours into {day: {"open": "HH:MM", "close": "HH:MM"}}.

    Prefers the human-readable weekday_text and falls back to periods.
    Closed days are left out. Returns None when no hours are available.
    """
    if not opening_hours:
        return None

    weekday_text: List[str] = list(opening_hours.get("weekday_text") or [])
    if weekday_text:
        return parse_hours_from_weekday_text(weekday_text)

    periods = list(opening_hours.get("periods") or [])
    if periods:
        return parse_hours_from_periods(periods)

    return None
