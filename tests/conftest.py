"""Shared fixtures: in-memory stand-ins for the embedding service and the vector index."""
from typing import Any, Dict, List, Optional

import pytest

from cv_search.services.vector_db_service import VectorDBService, matches_filter


class FakeEmbeddingService:
    """Returns a fixed unit vector, or raises the configured error."""

    def __init__(self, error: Optional[Exception] = None, dimension: int = 4):
        self.error = error
        self.dimension = dimension
        self.calls: List[str] = []

    async def generate_embedding(self, text: str) -> List[float]:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return [0.5] * self.dimension


class ScriptedVectorDB(VectorDBService):
    """
    Vector index whose query responses are scripted per call.

    ``responses[i]`` is returned for the i-th query regardless of the filter;
    every call is recorded so tests can assert on top_k and the filter sent.
    Stored records (``records``) back fetch/list/update.
    """

    def __init__(self, responses: Optional[List[List[Dict[str, Any]]]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.query_calls: List[Dict[str, Any]] = []
        self.records: Dict[str, Dict[str, Any]] = {}
        self.upserts: List[Dict[str, Any]] = []
        self.metadata_updates: List[tuple] = []

    async def initialize(self) -> None:
        pass

    async def upsert_vectors(self, vectors: List[Dict[str, Any]]) -> None:
        for vector in vectors:
            self.upserts.append(vector)
            self.records[vector["id"]] = dict(vector["metadata"])

    async def query_vectors(self, query_vector, top_k, filter_dict=None):
        self.query_calls.append({"top_k": top_k, "filter": filter_dict})
        if self.error is not None:
            raise self.error
        if not self.responses:
            return []
        return self.responses.pop(0)

    async def fetch_by_id(self, vector_id):
        metadata = self.records.get(vector_id)
        return dict(metadata) if metadata is not None else None

    async def delete_vectors(self, ids):
        for vector_id in ids:
            self.records.pop(vector_id, None)

    async def list_ids(self):
        return list(self.records)

    async def update_metadata(self, vector_id, metadata):
        self.metadata_updates.append((vector_id, dict(metadata)))
        self.records[vector_id].update(metadata)


class FilteringVectorDB(ScriptedVectorDB):
    """Answers queries from stored records, honouring the metadata filter like the index would."""

    def __init__(self, scores: Optional[Dict[str, float]] = None):
        super().__init__()
        self.scores = scores or {}

    async def query_vectors(self, query_vector, top_k, filter_dict=None):
        self.query_calls.append({"top_k": top_k, "filter": filter_dict})
        matches = [
            {"id": vector_id, "score": self.scores.get(vector_id, 0.9), "metadata": dict(metadata)}
            for vector_id, metadata in self.records.items()
            if matches_filter(metadata, filter_dict)
        ]
        matches.sort(key=lambda m: m["score"], reverse=True)
        return matches[:top_k]


def make_match(candidate_id: str, score: float = 0.9, **metadata) -> Dict[str, Any]:
    metadata.setdefault("cv_id", candidate_id)
    metadata.setdefault("filename", f"{candidate_id}.pdf")
    return {"id": candidate_id, "score": score, "metadata": metadata}


@pytest.fixture
def embedding_service():
    return FakeEmbeddingService()


@pytest.fixture
def match():
    """Factory for index matches: match("cv-1", 0.8, full_text="...")."""
    return make_match


@pytest.fixture
def scripted_db():
    """Factory for a ScriptedVectorDB: scripted_db([first_call_matches], [fallback_matches])."""
    def _make(*responses, error: Optional[Exception] = None):
        return ScriptedVectorDB(list(responses), error=error)
    return _make


@pytest.fixture
def failing_embedding_service():
    """Factory for an embedding service that raises the given error."""
    def _make(error: Exception):
        return FakeEmbeddingService(error=error)
    return _make
