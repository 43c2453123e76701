"""Service layer for external collaborators and the index write path."""
from cv_search.services.embedding_service import EmbeddingService
from cv_search.services.vector_db_service import VectorDBService, get_vector_db_service
from cv_search.services.candidate_indexing_service import CandidateIndexingService

__all__ = [
    "EmbeddingService",
    "VectorDBService",
    "get_vector_db_service",
    "CandidateIndexingService",
]
