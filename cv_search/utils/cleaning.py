"""Utility functions for candidate metadata cleaning and normalization.

The same functions run when a CV is written to the index and when a search
query is interpreted, so stored values and query values always compare in
the same canonical form.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cv_search.skills.taxonomy import normalize_skill

# Alternate spellings and abbreviations mapped to the stored location form.
# Values are never keys, which keeps normalize_location idempotent.
LOCATION_ALIAS_MAP = {
    "nyc": "new york",
    "new york city": "new york",
    "blr": "bangalore",
    "bengaluru": "bangalore",
    "bombay": "mumbai",
    "isb": "islamabad",
    "khi": "karachi",
    "lhr": "lahore",
    "pindi": "rawalpindi",
}

EDUCATION_FIELDS = (
    "degree", "program", "major", "university", "institution", "year", "graduationYear",
)

_LIST_SEPARATORS = re.compile(r"[|,]")


def normalize_text(text: Optional[str]) -> Optional[str]:
    """Normalize text by removing extra whitespace."""
    if not text:
        return None

    text = re.sub(r'\s+', ' ', str(text).strip())

    return text if text else None


def ensure_string_list(value: Any) -> Optional[List[str]]:
    """
    Coerce a stored skills value into a list of trimmed strings.

    Accepts a comma/pipe separated string or a list of values; anything else
    (or nothing usable) yields None so the field can be omitted.
    """
    if not value:
        return None

    if isinstance(value, str):
        parts = [part.strip() for part in _LIST_SEPARATORS.split(value)]
        parts = [part for part in parts if part]
        return parts or None

    if isinstance(value, (list, tuple, set)):
        items = []
        for item in value:
            if item is None or isinstance(item, (dict, list, tuple, set)):
                continue
            text = str(item).strip()
            if text:
                items.append(text)
        return items or None

    return None


def normalize_skill_list(skills: Any) -> Optional[List[str]]:
    """
    Normalize skills to canonical ids, deduplicated in first-seen order.

    Returns None (never an empty list) when nothing usable remains.
    """
    raw_skills = ensure_string_list(skills)
    if not raw_skills:
        return None

    normalized = []
    seen = set()

    for skill in raw_skills:
        normalized_skill = normalize_skill(skill)
        if normalized_skill and normalized_skill not in seen:
            normalized.append(normalized_skill)
            seen.add(normalized_skill)

    return normalized or None


def normalize_location(location: Optional[str]) -> str:
    """
    Canonical comparison form of a location.

    Examples:
    - "  Sialkot " -> "sialkot"
    - "NYC" -> "new york"
    - "Sialkot, Pakistan" -> "sialkot, pakistan"
    """
    if not location:
        return ""
    location_lower = re.sub(r'\s+', ' ', str(location).lower().strip())
    return LOCATION_ALIAS_MAP.get(location_lower, location_lower)


def _format_education_entry(entry: Dict[str, Any]) -> str:
    tokens = []
    for field in EDUCATION_FIELDS:
        value = entry.get(field)
        if value is None and field == "graduationYear":
            value = entry.get("graduation_year")
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, (str, int, float)):
            text = str(value).strip()
            if text:
                tokens.append(text)
    return ", ".join(tokens)


def format_education(education: Any) -> Optional[str]:
    """
    Flatten stored education into one display string.

    Strings pass through trimmed. A dict contributes its degree, program,
    major, university, institution and year fields joined with ", ", and a
    list joins its entries with " | ". Returns None when nothing is left.
    """
    if education is None:
        return None

    if isinstance(education, str):
        return normalize_text(education)

    if isinstance(education, dict):
        return _format_education_entry(education) or None

    if isinstance(education, (list, tuple)):
        parts = []
        for item in education:
            if isinstance(item, str):
                part = normalize_text(item)
            elif isinstance(item, dict):
                part = _format_education_entry(item)
            else:
                part = None
            if part:
                parts.append(part)
        return " | ".join(parts) or None

    return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string, epoch seconds or datetime into an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None
