"""Candidate search service: semantic retrieval, post-filtering, ranking and fallback."""
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from cv_search.ai_search.ai_search_query_parser import QueryIntentExtractor
from cv_search.ai_search.filter_builder import build_fallback_filter, build_pinecone_filter
from cv_search.config import settings
from cv_search.exceptions import EmptyQueryError, MalformedCandidateError, UpstreamUnavailableError
from cv_search.models.search_models import CandidateResult, QueryIntent, SearchFilters
from cv_search.services.embedding_service import EmbeddingService
from cv_search.services.vector_db_service import VectorDBService
from cv_search.skills.taxonomy import mentions, variants_of
from cv_search.utils.cleaning import ensure_string_list, parse_timestamp
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

# Metadata fields copied onto a search result when the candidate has them
RESULT_METADATA_FIELDS = (
    "full_name", "email", "phone", "skills", "experience_years", "education", "location",
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class RetrievedCandidate:
    """One index match after validation: id, score and metadata with typed accessors."""

    __slots__ = ("id", "score", "metadata")

    def __init__(self, match: Dict[str, Any]):
        candidate_id = match.get("id") if isinstance(match, dict) else None
        if not isinstance(candidate_id, str) or not candidate_id:
            raise MalformedCandidateError(candidate_id, "missing id")

        score = match.get("score")
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not math.isfinite(score):
            raise MalformedCandidateError(candidate_id, f"non-numeric score {score!r}")

        metadata = match.get("metadata")
        if metadata is None:
            metadata = {}
        if not isinstance(metadata, dict):
            raise MalformedCandidateError(candidate_id, "metadata is not a mapping")

        self.id = candidate_id
        self.score = float(score)
        self.metadata = metadata

    def text(self, key: str) -> str:
        value = self.metadata.get(key)
        return value.lower() if isinstance(value, str) else ""

    def lowered_list(self, key: str) -> List[str]:
        return [item.lower() for item in ensure_string_list(self.metadata.get(key)) or []]

    @property
    def experience_years(self) -> float:
        value = self.metadata.get("experience_years")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return 0
        return value

    @property
    def upload_date(self) -> Optional[datetime]:
        return parse_timestamp(self.metadata.get("upload_date"))


class AISearchService:
    """
    Retrieval and ranking pipeline.

    1. Reject blank queries before any external call
    2. Embed the query and merge extracted intent with explicit filters
    3. Query the index once with the metadata filter
    4. Post-filter on skills, location and education (removal only)
    5. Apply the similarity floor, then sort when requested
    6. With nothing left and at least one active constraint, run one relaxed
       fallback query: larger pool, lower floor, text-only skill matching,
       location and education checked exactly as before
    """

    def __init__(
        self,
        embedding_service: EmbeddingService,
        vector_db: VectorDBService,
        query_parser: Optional[QueryIntentExtractor] = None,
    ):
        self.embedding_service = embedding_service
        self.vector_db = vector_db
        self.query_parser = query_parser or QueryIntentExtractor()
        self.search_top_k = settings.search_top_k
        self.fallback_top_k = settings.fallback_top_k
        self.similarity_threshold = settings.similarity_threshold
        self.fallback_similarity_threshold = settings.fallback_similarity_threshold

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> List[CandidateResult]:
        """
        Search candidates for a free-text query plus optional explicit filters.

        Raises:
            EmptyQueryError: query is blank
            UpstreamUnavailableError: embedding service or index failed or timed out
        """
        if not query or not query.strip():
            raise EmptyQueryError()

        query_embedding = await self._embed(query)
        intent = self.query_parser.build_intent(query, filters)

        pinecone_filter = build_pinecone_filter(intent)
        logger.info(
            f"Searching candidates: {query[:100]}",
            extra={
                "query": query[:100],
                "filter": pinecone_filter,
                "has_skill_terms": intent.has_skill_terms,
                "has_location_terms": intent.has_location_terms,
                "has_education_terms": intent.has_education_terms,
            }
        )

        matches = await self._query_index(query_embedding, self.search_top_k, pinecone_filter)
        candidates = self._post_filter(matches, intent, text_only_skills=False)
        candidates = [c for c in candidates if c.score >= self.similarity_threshold]
        candidates = self._sort(candidates, intent)

        if not candidates and not intent.is_general_query:
            logger.info(
                "No results with strict filtering, running fallback search",
                extra={"query": query[:100], "fallback_top_k": self.fallback_top_k}
            )
            fallback_matches = await self._query_index(
                query_embedding, self.fallback_top_k, build_fallback_filter(intent)
            )
            candidates = self._post_filter(fallback_matches, intent, text_only_skills=True)
            candidates = [c for c in candidates if c.score >= self.fallback_similarity_threshold]
            candidates = self._sort(candidates, intent)

        logger.info(
            f"Found {len(candidates)} matching candidates",
            extra={"query": query[:100], "result_count": len(candidates)}
        )
        return [self._to_result(candidate) for candidate in candidates]

    async def _embed(self, query: str) -> List[float]:
        try:
            return await self.embedding_service.generate_embedding(query)
        except UpstreamUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Query embedding failed: {e}", extra={"error": str(e)})
            raise UpstreamUnavailableError("embedding", str(e) or type(e).__name__, cause=e) from e

    async def _query_index(
        self,
        query_embedding: List[float],
        top_k: int,
        filter_dict: Optional[Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        try:
            matches = await self.vector_db.query_vectors(
                query_vector=query_embedding,
                top_k=top_k,
                filter_dict=filter_dict,
            )
        except UpstreamUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Vector index query failed: {e}", extra={"error": str(e), "top_k": top_k})
            raise UpstreamUnavailableError("vector_index", str(e) or type(e).__name__, cause=e) from e

        logger.debug(
            f"Index returned {len(matches)} matches before post-filtering",
            extra={"top_k": top_k, "filter": filter_dict}
        )
        return list(matches or [])

    def _post_filter(
        self,
        matches: List[Dict[str, Any]],
        intent: QueryIntent,
        text_only_skills: bool,
    ) -> List[RetrievedCandidate]:
        """Keep candidates passing every active pass; malformed ones are logged and dropped."""
        survivors = []
        for match in matches:
            try:
                candidate = RetrievedCandidate(match)
                if intent.has_skill_terms and not self.matches_skills(candidate, intent.skills, text_only_skills):
                    logger.debug(f"Candidate {candidate.id} filtered out - no matching skill")
                    continue
                if intent.has_location_terms and not self.matches_location(candidate, intent.location_normalized):
                    logger.debug(f"Candidate {candidate.id} filtered out - no matching location")
                    continue
                if intent.has_education_terms and not self.matches_education(candidate, intent.education):
                    logger.debug(f"Candidate {candidate.id} filtered out - no matching education")
                    continue
            except MalformedCandidateError as e:
                logger.warning(
                    f"Skipping malformed candidate: {e}",
                    extra={"candidate_id": e.candidate_id, "reason": e.reason}
                )
                continue
            except (TypeError, ValueError, AttributeError) as e:
                candidate_id = match.get("id") if isinstance(match, dict) else None
                logger.warning(
                    f"Skipping candidate {candidate_id!r}: {e}",
                    extra={"candidate_id": candidate_id, "reason": str(e)}
                )
                continue
            survivors.append(candidate)
        return survivors

    @staticmethod
    def matches_skills(candidate: RetrievedCandidate, skills, text_only: bool = False) -> bool:
        """
        Any requested skill matches via, in order: (a) the normalized skills
        list, (b) the raw skills list case-insensitively, (c) the skill id in
        the full text, (d) any variant of it in the full text. With
        ``text_only`` only (c) and (d) are consulted.
        """
        full_text = candidate.text("full_text")
        normalized = [] if text_only else candidate.lowered_list("skills_normalized")
        raw = [] if text_only else candidate.lowered_list("skills")

        for skill_id in skills:
            skill = skill_id.lower()
            if skill in normalized or skill in raw:
                return True
            if mentions(full_text, skill):
                return True
            if any(mentions(full_text, variant) for variant in variants_of(skill)):
                return True
        return False

    @staticmethod
    def matches_location(candidate: RetrievedCandidate, query_location: Optional[str]) -> bool:
        """
        (a) normalized location equals the query, (b) raw location equals it
        case-insensitively, (c) normalized location contains it, (d) raw
        location contains it. "sialkot" therefore matches "Sialkot, Pakistan".
        """
        if not query_location:
            return True
        query_location = query_location.lower()
        location_normalized = candidate.text("location_normalized")
        location = candidate.text("location")
        return (
            location_normalized == query_location
            or location == query_location
            or query_location in location_normalized
            or query_location in location
        )

    @staticmethod
    def matches_education(candidate: RetrievedCandidate, education: Optional[str]) -> bool:
        """
        The phrase appears in the education field or the full text; failing
        that, any word of the phrase longer than two characters appears in
        either.
        """
        if not education or not education.strip():
            return True
        phrase = education.lower().strip()
        candidate_education = candidate.text("education")
        full_text = candidate.text("full_text")

        if phrase in candidate_education or phrase in full_text:
            return True
        return any(
            len(word) > 2 and (word in candidate_education or word in full_text)
            for word in phrase.split()
        )

    @staticmethod
    def _sort(candidates: List[RetrievedCandidate], intent: QueryIntent) -> List[RetrievedCandidate]:
        """Stable sort by experience or upload date; relevance keeps index order."""
        if intent.sort_by == "experience":
            key = lambda c: c.experience_years
        elif intent.sort_by == "uploadDate":
            key = lambda c: c.upload_date or EPOCH
        else:
            return candidates
        return sorted(candidates, key=key, reverse=intent.sort_order == "desc")

    @staticmethod
    def _to_result(candidate: RetrievedCandidate) -> CandidateResult:
        metadata = candidate.metadata
        projected = {
            field: metadata[field]
            for field in RESULT_METADATA_FIELDS
            if metadata.get(field) not in (None, "", [])
        }
        education = metadata.get("education")
        filename = metadata.get("filename")
        return CandidateResult(
            id=candidate.id,
            filename=filename if isinstance(filename, str) else None,
            metadata=projected,
            similarity_score=candidate.score,
            upload_date=candidate.upload_date,
            education=education if isinstance(education, str) else None,
        )
