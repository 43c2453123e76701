"""Education extraction module for extracting an education keyword from search queries."""
from cv_search.education.education_extractor import EducationExtractor, DEGREE_KEYWORDS, STUDY_FIELDS

__all__ = [
    "EducationExtractor",
    "DEGREE_KEYWORDS",
    "STUDY_FIELDS",
]
