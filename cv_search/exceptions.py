"""Typed failures raised by the candidate search engine."""
from typing import Optional


class CandidateSearchError(Exception):
    """Base class for every search failure surfaced to callers."""

    code = "SEARCH_ERROR"


class EmptyQueryError(CandidateSearchError):
    """The caller supplied a blank query string."""

    code = "EMPTY_QUERY"

    def __init__(self, message: str = "Search query is required"):
        super().__init__(message)


class UpstreamUnavailableError(CandidateSearchError):
    """The embedding service or the vector index failed or timed out."""

    code = "UPSTREAM_UNAVAILABLE"

    def __init__(self, service: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{service} unavailable: {message}")
        self.service = service
        self.cause = cause


class MalformedCandidateError(CandidateSearchError):
    """A retrieved record carries metadata that cannot be interpreted."""

    code = "MALFORMED_CANDIDATE"

    def __init__(self, candidate_id: Optional[str], reason: str):
        super().__init__(f"Candidate {candidate_id!r} is malformed: {reason}")
        self.candidate_id = candidate_id
        self.reason = reason
