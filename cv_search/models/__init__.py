"""Pydantic models for request/response validation."""
from cv_search.models.candidate_models import CandidateRecord, StoredFileLocation
from cv_search.models.search_models import (
    CandidateResult,
    QueryIntent,
    SearchFilters,
    SearchRequest,
    SearchResponse,
)

__all__ = [
    "CandidateRecord",
    "StoredFileLocation",
    "CandidateResult",
    "QueryIntent",
    "SearchFilters",
    "SearchRequest",
    "SearchResponse",
]
