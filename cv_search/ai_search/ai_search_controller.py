"""Controller for candidate search operations."""
import time
from typing import Optional

from cv_search.ai_search.ai_search_service import AISearchService
from cv_search.models.search_models import SearchFilters, SearchResponse
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)


class AISearchController:
    """Controller for candidate search operations."""

    def __init__(self, search_service: AISearchService):
        self.search_service = search_service

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> SearchResponse:
        """
        Run a candidate search and shape the response.

        Errors from the service (EmptyQueryError, UpstreamUnavailableError)
        propagate unchanged; the API layer maps them to HTTP responses.
        """
        start_time = time.perf_counter()

        results = await self.search_service.search(query, filters)

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"Search completed with {len(results)} results in {elapsed_ms}ms",
            extra={
                "query": (query or "")[:100],
                "result_count": len(results),
                "elapsed_ms": elapsed_ms,
            }
        )

        return SearchResponse(
            query=query,
            total_results=len(results),
            results=results,
        )
