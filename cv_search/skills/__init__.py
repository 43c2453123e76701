"""Skill taxonomy and query skill extraction."""
from cv_search.skills.taxonomy import canonical_skills, mentions, normalize_skill, variants_of
from cv_search.skills.skills_extractor import SkillsExtractor

__all__ = [
    "SkillsExtractor",
    "canonical_skills",
    "mentions",
    "normalize_skill",
    "variants_of",
]
