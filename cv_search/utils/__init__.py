"""Utility modules."""
from cv_search.utils.cleaning import (
    ensure_string_list,
    format_education,
    normalize_location,
    normalize_skill_list,
    normalize_text,
    parse_timestamp,
    LOCATION_ALIAS_MAP,
)
from cv_search.utils.logging import setup_logging, get_logger

__all__ = [
    "ensure_string_list",
    "format_education",
    "normalize_location",
    "normalize_skill_list",
    "normalize_text",
    "parse_timestamp",
    "LOCATION_ALIAS_MAP",
    "setup_logging",
    "get_logger",
]
