"""Turn a free-text search query plus explicit filters into a QueryIntent."""
from typing import List, Optional

from cv_search.education.education_extractor import EducationExtractor
from cv_search.location.location_extractor import LocationExtractor
from cv_search.models.search_models import QueryIntent, SearchFilters
from cv_search.skills.skills_extractor import SkillsExtractor
from cv_search.skills.taxonomy import normalize_skill
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)


class QueryIntentExtractor:
    """
    Rule-based query parser.

    Skills, location and education are extracted independently; any
    combination of them (including none) may come back. Experience bounds and
    sort order are only ever taken from explicit filters.
    """

    def __init__(
        self,
        skills_extractor: Optional[SkillsExtractor] = None,
        location_extractor: Optional[LocationExtractor] = None,
        education_extractor: Optional[EducationExtractor] = None,
    ):
        self.skills_extractor = skills_extractor or SkillsExtractor()
        self.location_extractor = location_extractor or LocationExtractor()
        self.education_extractor = education_extractor or EducationExtractor()

    def extract(self, query: str) -> QueryIntent:
        """Extract skills, location and education from query text alone."""
        return QueryIntent(
            skills=tuple(self.skills_extractor.extract(query)),
            location=self.location_extractor.extract(query),
            education=self.education_extractor.extract(query),
        )

    def build_intent(self, query: str, filters: Optional[SearchFilters] = None) -> QueryIntent:
        """
        Merge extracted intent with explicit filters.

        Explicit location and education replace extracted ones. Skills are the
        ordered union: extracted skills first, then each explicit skill
        normalized through the taxonomy, duplicates dropped.
        """
        extracted = self.extract(query)
        if filters is None:
            intent = extracted
        else:
            skills: List[str] = list(extracted.skills)
            for raw_skill in filters.skills or []:
                skill = normalize_skill(raw_skill)
                if skill and skill not in skills:
                    skills.append(skill)

            intent = QueryIntent(
                skills=tuple(skills),
                location=filters.location or extracted.location,
                education=filters.education or extracted.education,
                min_experience=filters.min_experience,
                max_experience=filters.max_experience,
                sort_by=filters.sort_by,
                sort_order=filters.sort_order,
            )

        logger.info(
            f"Query intent: {len(intent.skills)} skill(s), "
            f"location={intent.location!r}, education={intent.education!r}",
            extra={
                "skills": list(intent.skills),
                "location": intent.location,
                "education": intent.education,
                "min_experience": intent.min_experience,
                "max_experience": intent.max_experience,
            }
        )
        return intent
