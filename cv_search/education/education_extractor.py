"""Rule-based extraction of an education keyword from a search query."""
from typing import Optional

from cv_search.skills.taxonomy import iter_catalog, mentions
from cv_search.utils.extraction_rules import TRAILING_PHRASE, first_capture, rule
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

INSTITUTION_WORDS = ("university", "college", "institute", "school")

DEGREE_KEYWORDS = (
    "bachelor", "master", "phd", "doctorate", "diploma", "certification",
    "bs", "ms", "mba", "bsc", "msc", "ba", "ma",
)

STUDY_FIELDS = (
    "computer science", "information technology", "software engineering",
    "data science", "artificial intelligence", "machine learning",
    "web development", "mobile development", "cybersecurity",
    "business administration", "management", "marketing",
)

EDUCATION_RULES = (
    rule(
        "degree_phrase",
        r"\b(?:degree in|studied|graduated|bachelor|master|phd|diploma|certification)\s+" + TRAILING_PHRASE,
        max_length=50,
    ),
    rule(
        "from_institution",
        r"\b(?:from|at)\s+([a-z\s]+?(?:university|college|institute|school))",
        max_length=50,
    ),
    rule(
        "institution_of",
        r"\b(?:university|college|institute|school)\s+of\s+([a-z\s]+)",
        max_length=50,
    ),
    rule("degree_in", r"\bdegree\s+in\s+([a-z\s]+)", max_length=50),
)


def _display(value: str) -> str:
    return value[:1].upper() + value[1:]


# Skill spellings that contain a degree token, e.g. "ms sql" holds "ms"
_SKILL_SPELLINGS_WITH_DEGREES = {
    degree: tuple(
        spelling
        for _, spellings in iter_catalog()
        for spelling in spellings
        if spelling != degree and mentions(spelling, degree)
    )
    for degree in DEGREE_KEYWORDS
}


def _mentions_degree(query_lower: str, degree: str) -> bool:
    if not mentions(query_lower, degree):
        return False
    return not any(mentions(query_lower, spelling) for spelling in _SKILL_SPELLINGS_WITH_DEGREES[degree])


def looks_like_education(phrase: str) -> bool:
    """True when a phrase names a degree, an institution or a field of study."""
    phrase_lower = (phrase or "").lower()
    if any(word in phrase_lower for word in INSTITUTION_WORDS):
        return True
    if any(_mentions_degree(phrase_lower, degree) for degree in DEGREE_KEYWORDS):
        return True
    return any(field in phrase_lower for field in STUDY_FIELDS)


class EducationExtractor:
    """Extract an education keyword: pattern rules, then degree types, then study fields."""

    def extract(self, query: str) -> Optional[str]:
        if not query or not query.strip():
            return None
        query_lower = query.lower()

        hit = first_capture(query_lower, EDUCATION_RULES)
        if hit:
            rule_name, phrase = hit
            logger.debug(
                f"Education extracted from pattern: '{phrase}'",
                extra={"rule": rule_name, "query": query}
            )
            return _display(phrase)

        for degree in DEGREE_KEYWORDS:
            if _mentions_degree(query_lower, degree):
                logger.debug(f"Degree type extracted: '{degree}'", extra={"query": query})
                return _display(degree)

        for field in STUDY_FIELDS:
            if field in query_lower:
                logger.debug(f"Study field extracted: '{field}'", extra={"query": query})
                return _display(field)

        return None
