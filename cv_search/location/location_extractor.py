"""Rule-based extraction of a candidate location from a search query."""
from typing import Optional

from cv_search.education.education_extractor import looks_like_education
from cv_search.skills.taxonomy import iter_catalog, mentions
from cv_search.utils.extraction_rules import TRAILING_PHRASE, first_capture, rule
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

# Known cities matched anywhere in the query when no rule fires
KNOWN_CITIES = (
    "karachi", "sialkot", "lahore", "islamabad", "rawalpindi",
    "faisalabad", "multan", "peshawar", "quetta", "hyderabad",
)

LOCATION_RULES = (
    rule("based_in", r"\bbased in\s+" + TRAILING_PHRASE),
    rule("located_in", r"\blocated in\s+" + TRAILING_PHRASE),
    rule("from", r"\bfrom\s+" + TRAILING_PHRASE),
    rule("in", r"\bin\s+" + TRAILING_PHRASE),
    rule("of", r"\bof\s+" + TRAILING_PHRASE),
)

EXPERIENCE_WORDS = ("experience", "years", "year", "yrs")


def _mentions_skill(phrase: str) -> bool:
    return any(
        mentions(phrase, variant)
        for _, variants in iter_catalog()
        for variant in variants
    )


def is_not_a_place(phrase: str) -> bool:
    """
    Veto captures that are education, experience or skill phrases.

    "degree in computer science", "5 years of experience" and "experience in
    react" all look like "in/of <place>" to the rules.
    """
    phrase_lower = phrase.lower()
    if any(mentions(phrase_lower, word) for word in EXPERIENCE_WORDS):
        return True
    if looks_like_education(phrase_lower):
        return True
    return _mentions_skill(phrase_lower)


class LocationExtractor:
    """Extract a display-form location: phrase rules first, then the city gazetteer."""

    def extract(self, query: str) -> Optional[str]:
        if not query or not query.strip():
            return None
        query_lower = query.lower()

        hit = first_capture(query_lower, LOCATION_RULES, reject=is_not_a_place)
        if hit:
            rule_name, place = hit
            logger.debug(
                f"Location extracted from pattern: '{place}'",
                extra={"rule": rule_name, "query": query}
            )
            return place.title()

        for city in KNOWN_CITIES:
            if city in query_lower:
                logger.debug(f"Known city extracted: '{city}'", extra={"query": query})
                return city.title()

        return None
