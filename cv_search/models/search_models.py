"""Pydantic models for candidate search requests, intent and results."""
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

from cv_search.utils.cleaning import ensure_string_list, normalize_location

SortField = Literal["relevance", "experience", "uploadDate"]
SortOrder = Literal["asc", "desc"]


class SearchFilters(BaseModel):
    """Explicit filters supplied alongside a free-text query."""
    skills: Optional[List[str]] = Field(None, description="Skills every result should have at least one of")
    location: Optional[str] = Field(None, description="Candidate location, overrides any location in the query")
    education: Optional[str] = Field(None, description="Education keyword, overrides any education in the query")
    min_experience: Optional[int] = Field(None, ge=0, alias="minExperience")
    max_experience: Optional[int] = Field(None, ge=0, alias="maxExperience")
    sort_by: Optional[SortField] = Field(None, alias="sortBy")
    sort_order: SortOrder = Field("desc", alias="sortOrder")

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> Optional[List[str]]:
        """Accept a comma separated string as well as a list."""
        return ensure_string_list(v)

    @field_validator("location", "education", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_experience_range(self) -> "SearchFilters":
        if (
            self.min_experience is not None
            and self.max_experience is not None
            and self.min_experience > self.max_experience
        ):
            raise ValueError("minExperience must not be greater than maxExperience")
        return self

    class Config:
        populate_by_name = True


class SearchRequest(SearchFilters):
    """Request model for candidate search: the query plus optional filters."""
    query: str = Field(..., description="Natural language search query")

    def to_filters(self) -> SearchFilters:
        return SearchFilters.model_validate(self.model_dump(exclude={"query"}))


class QueryIntent(BaseModel):
    """Structured intent of one search, merged from the query text and explicit filters."""
    skills: Tuple[str, ...] = ()
    location: Optional[str] = None
    education: Optional[str] = None
    min_experience: Optional[int] = None
    max_experience: Optional[int] = None
    sort_by: Optional[SortField] = None
    sort_order: SortOrder = "desc"

    @property
    def location_normalized(self) -> Optional[str]:
        return normalize_location(self.location) or None

    @property
    def has_skill_terms(self) -> bool:
        return bool(self.skills)

    @property
    def has_location_terms(self) -> bool:
        return bool(self.location_normalized)

    @property
    def has_education_terms(self) -> bool:
        return bool(self.education and self.education.strip())

    @property
    def is_general_query(self) -> bool:
        return not (self.has_skill_terms or self.has_location_terms or self.has_education_terms)

    class Config:
        frozen = True


class CandidateResult(BaseModel):
    """Individual candidate result model."""
    id: str
    filename: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Only the metadata fields the candidate has")
    similarity_score: float = Field(..., description="Similarity score reported by the vector index")
    upload_date: Optional[datetime] = None
    education: Optional[str] = None


class SearchResponse(BaseModel):
    """Response model for candidate search."""
    query: str
    total_results: int
    results: List[CandidateResult]
