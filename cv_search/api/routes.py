"""API route definitions."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from cv_search.ai_search.ai_search_controller import AISearchController
from cv_search.ai_search.ai_search_service import AISearchService
from cv_search.models.candidate_models import CandidateRecord, StoredFileLocation
from cv_search.models.search_models import SearchRequest, SearchResponse
from cv_search.services.candidate_indexing_service import CandidateIndexingService
from cv_search.services.embedding_service import EmbeddingService
from cv_search.services.vector_db_service import VectorDBService
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

MAX_BULK_RECORDS = 10


# Dependency factories
def get_vector_db(request: Request) -> VectorDBService:
    """Vector DB created during application startup."""
    return request.app.state.vector_db


def get_embedding_service(request: Request) -> EmbeddingService:
    """Embedding service shared across requests so the model probe runs once."""
    return request.app.state.embedding_service


def get_ai_search_controller(
    vector_db: VectorDBService = Depends(get_vector_db),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> AISearchController:
    """Create AISearchController with dependencies."""
    return AISearchController(AISearchService(embedding_service, vector_db))


def get_candidate_indexing_service(
    vector_db: VectorDBService = Depends(get_vector_db),
    embedding_service: EmbeddingService = Depends(get_embedding_service),
) -> CandidateIndexingService:
    """Create CandidateIndexingService with dependencies."""
    return CandidateIndexingService(vector_db, embedding_service)


@router.post("/search/cv", response_model=SearchResponse, status_code=200)
async def search_cvs(
    request: SearchRequest,
    controller: AISearchController = Depends(get_ai_search_controller)
):
    """
    Search CVs with a natural language query and optional filters.

    Request body:
    - query: free-text query (e.g., "react developer in Lahore")
    - skills, location, education: explicit filters
    - minExperience / maxExperience: experience range in years
    - sortBy (relevance | experience | uploadDate), sortOrder (asc | desc)

    A blank query is rejected with 400; an unavailable embedding service or
    vector index yields 503.
    """
    logger.info(f"Searching CVs with query: {request.query[:100]}")
    return await controller.search(query=request.query, filters=request.to_filters())


@router.get("/search/cv/simple", response_model=SearchResponse, status_code=200)
async def simple_search(
    q: Optional[str] = Query(None, description="Natural language search query"),
    controller: AISearchController = Depends(get_ai_search_controller)
):
    """Search CVs with a query string only."""
    logger.info(f"Simple search with query: {(q or '')[:100]}")
    return await controller.search(query=q or "")


@router.get("/search/health")
async def search_health() -> Dict[str, str]:
    """Health check endpoint for the search service."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "cv-search",
    }


@router.post("/cv/index", status_code=200)
async def index_cv(
    record: CandidateRecord,
    service: CandidateIndexingService = Depends(get_candidate_indexing_service)
) -> Dict[str, Any]:
    """Index a parsed CV: normalize its metadata and upsert it into the vector index."""
    metadata = await service.index_candidate(record)
    return {
        "id": record.cv_id,
        "filename": record.filename,
        "message": "CV indexed successfully",
        "metadata": {key: value for key, value in metadata.items() if key != "full_text"},
    }


@router.post("/cv/index/bulk", status_code=200)
async def index_cvs_bulk(
    records: List[CandidateRecord],
    service: CandidateIndexingService = Depends(get_candidate_indexing_service)
) -> Dict[str, Any]:
    """
    Index up to ten parsed CVs in one request.

    Each record is indexed independently; failures are reported per id in
    the summary rather than failing the whole request.
    """
    if not records:
        raise HTTPException(status_code=400, detail="No CVs provided")
    if len(records) > MAX_BULK_RECORDS:
        raise HTTPException(status_code=400, detail=f"Maximum {MAX_BULK_RECORDS} CVs allowed per request")

    logger.info(f"Bulk indexing {len(records)} CVs")
    summary = await service.index_candidates(records)
    return {"total": len(records), **summary}


@router.get("/cv/{cv_id}")
async def get_cv(
    cv_id: str,
    service: CandidateIndexingService = Depends(get_candidate_indexing_service)
) -> Dict[str, Any]:
    """Stored metadata of one CV (without its full text)."""
    metadata = await service.get_candidate(cv_id)
    if metadata is None:
        raise HTTPException(status_code=404, detail=f"CV {cv_id} not found")
    return {
        "id": cv_id,
        "filename": metadata.get("filename"),
        "metadata": {key: value for key, value in metadata.items() if key != "full_text"},
    }


@router.get("/cv/{cv_id}/file", response_model=StoredFileLocation)
async def get_cv_file_location(
    cv_id: str,
    service: CandidateIndexingService = Depends(get_candidate_indexing_service)
):
    """Where the original CV file is stored."""
    location = await service.get_stored_file_path(cv_id)
    if location is None:
        raise HTTPException(status_code=404, detail=f"No stored file for CV {cv_id}")
    return location
