"""Extract canonical skills mentioned in a free-text search query."""
from typing import List

from cv_search.skills.taxonomy import iter_catalog, mentions
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)


class SkillsExtractor:
    """Match query text against every variant of every catalog skill."""

    def extract(self, query: str) -> List[str]:
        """
        Return the canonical skill ids mentioned in the query.

        Skills are reported in catalog order, each at most once. A skill is
        found when any of its variants is mentioned, so "React Native
        developer" yields ["react"] rather than two separate hits.
        """
        if not query or not query.strip():
            return []

        query_lower = query.lower()
        found: List[str] = []
        for skill_id, variants in iter_catalog():
            if skill_id in found:
                continue
            if any(mentions(query_lower, variant) for variant in variants):
                found.append(skill_id)

        if found:
            logger.debug(
                f"Extracted {len(found)} skill(s) from query",
                extra={"skills": found}
            )
        return found
