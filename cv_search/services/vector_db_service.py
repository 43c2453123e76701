"""Vector database service with Pinecone and FAISS fallback."""
import asyncio
import os
import pickle
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

import faiss
import numpy as np
from pinecone import Pinecone, ServerlessSpec

from cv_search.config import settings
from cv_search.exceptions import UpstreamUnavailableError
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)

SERVICE_NAME = "vector_index"


class VectorDBService(ABC):
    """Abstract base class for vector database operations."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize the vector database."""
        pass

    @abstractmethod
    async def upsert_vectors(self, vectors: List[Dict[str, Any]]) -> None:
        """Upsert vectors with metadata. Each item: {"id", "embedding", "metadata"}."""
        pass

    @abstractmethod
    async def query_vectors(
        self,
        query_vector: List[float],
        top_k: int,
        filter_dict: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Query similar vectors. Returns [{"id", "score", "metadata"}] best first."""
        pass

    @abstractmethod
    async def fetch_by_id(self, vector_id: str) -> Optional[Dict[str, Any]]:
        """Return the metadata stored for one vector, or None when it does not exist."""
        pass

    @abstractmethod
    async def delete_vectors(self, ids: List[str]) -> None:
        """Delete vectors by IDs."""
        pass

    @abstractmethod
    async def list_ids(self) -> List[str]:
        """List every vector id in the index."""
        pass

    @abstractmethod
    async def update_metadata(self, vector_id: str, metadata: Dict[str, Any]) -> None:
        """Overwrite the given metadata fields of one vector, leaving its embedding alone."""
        pass


async def _run_bounded(operation: str, func: Callable[[], Any]) -> Any:
    """Run a blocking index call in the thread pool, bounded by VECTOR_QUERY_TIMEOUT."""
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(
            loop.run_in_executor(None, func),
            timeout=settings.vector_query_timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error(
            f"Vector index {operation} timed out after {settings.vector_query_timeout}s",
            extra={"operation": operation}
        )
        raise UpstreamUnavailableError(SERVICE_NAME, f"{operation} timed out", cause=e) from e
    except UpstreamUnavailableError:
        raise
    except Exception as e:
        logger.error(f"Vector index {operation} failed: {e}", extra={"operation": operation, "error": str(e)})
        raise UpstreamUnavailableError(SERVICE_NAME, f"{operation} failed: {e}", cause=e) from e


class PineconeVectorDB(VectorDBService):
    """Pinecone implementation of vector database service."""

    def __init__(self):
        self.pc = None
        self.index = None
        self.index_name = settings.pinecone_index_name
        self.dimension = settings.embedding_dimension

    async def initialize(self) -> None:
        """Initialize Pinecone client and index."""
        if not settings.use_pinecone:
            raise RuntimeError("Pinecone API key not configured")

        try:
            self.pc = Pinecone(api_key=settings.pinecone_api_key)

            existing_indexes = [idx.name for idx in self.pc.list_indexes()]

            if self.index_name not in existing_indexes:
                logger.info(f"Creating Pinecone index: {self.index_name}")
                self.pc.create_index(
                    name=self.index_name,
                    dimension=self.dimension,
                    metric="cosine",
                    spec=ServerlessSpec(
                        cloud=settings.pinecone_cloud,
                        region=settings.pinecone_region
                    )
                )
                # Wait for index to be ready
                while self.index_name not in [idx.name for idx in self.pc.list_indexes()]:
                    await asyncio.sleep(1)

            self.index = self.pc.Index(self.index_name)
            logger.info(f"Pinecone initialized: {self.index_name}")

        except Exception as e:
            logger.error(f"Failed to initialize Pinecone: {e}", extra={"error": str(e)})
            raise

    def _require_index(self):
        if not self.index:
            raise RuntimeError("Pinecone index not initialized")
        return self.index

    async def upsert_vectors(self, vectors: List[Dict[str, Any]]) -> None:
        """Upsert vectors to Pinecone."""
        index = self._require_index()

        pinecone_vectors = []
        for vec_data in vectors:
            vector_id = vec_data.get("id")
            embedding = vec_data.get("embedding")
            if not vector_id or not embedding:
                continue
            pinecone_vectors.append({
                "id": str(vector_id),
                "values": embedding,
                "metadata": vec_data.get("metadata", {})
            })

        if pinecone_vectors:
            await _run_bounded("upsert", lambda: index.upsert(vectors=pinecone_vectors))
            logger.info(f"Upserted {len(pinecone_vectors)} vectors to Pinecone")

    async def query_vectors(
        self,
        query_vector: List[float],
        top_k: int,
        filter_dict: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Query similar vectors from Pinecone."""
        index = self._require_index()

        results = await _run_bounded(
            "query",
            lambda: index.query(
                vector=query_vector,
                top_k=top_k,
                include_metadata=True,
                filter=filter_dict
            )
        )

        return [
            {
                "id": match.id,
                "score": match.score,
                "metadata": match.metadata or {},
            }
            for match in (results.matches or [])
        ]

    async def fetch_by_id(self, vector_id: str) -> Optional[Dict[str, Any]]:
        """Fetch stored metadata for one vector from Pinecone."""
        index = self._require_index()
        response = await _run_bounded("fetch", lambda: index.fetch(ids=[str(vector_id)]))
        vector = (response.vectors or {}).get(str(vector_id))
        if vector is None:
            return None
        return dict(vector.metadata or {})

    async def delete_vectors(self, ids: List[str]) -> None:
        """Delete vectors from Pinecone."""
        index = self._require_index()
        await _run_bounded("delete", lambda: index.delete(ids=[str(i) for i in ids]))
        logger.info(f"Deleted {len(ids)} vectors from Pinecone")

    async def list_ids(self) -> List[str]:
        """List vector ids by paging through the (serverless) index."""
        index = self._require_index()

        def _list():
            all_ids: List[str] = []
            for page in index.list():
                all_ids.extend(page)
            return all_ids

        return await _run_bounded("list", _list)

    async def update_metadata(self, vector_id: str, metadata: Dict[str, Any]) -> None:
        """Set metadata fields on one Pinecone vector."""
        index = self._require_index()
        await _run_bounded(
            "update",
            lambda: index.update(id=str(vector_id), set_metadata=metadata)
        )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _matches_condition(value: Any, present: bool, operator: str, operand: Any) -> bool:
    if operator == "$exists":
        return present == bool(operand)
    if operator == "$ne":
        if not present:
            return True
        return operand not in value if isinstance(value, list) else value != operand
    if operator == "$nin":
        if not present:
            return True
        values = value if isinstance(value, list) else [value]
        return not any(v in operand for v in values)
    if not present:
        return False
    if operator == "$eq":
        return operand in value if isinstance(value, list) else value == operand
    if operator == "$in":
        values = value if isinstance(value, list) else [value]
        return any(v in operand for v in values)
    if operator in ("$gt", "$gte", "$lt", "$lte"):
        if not (_is_number(value) and _is_number(operand)):
            return False
        if operator == "$gt":
            return value > operand
        if operator == "$gte":
            return value >= operand
        if operator == "$lt":
            return value < operand
        return value <= operand
    raise ValueError(f"Unsupported filter operator: {operator}")


def matches_filter(metadata: Dict[str, Any], filter_dict: Optional[Dict[str, Any]]) -> bool:
    """
    Evaluate a Pinecone metadata filter against one record's metadata.

    Supports $eq, $ne, $gt, $gte, $lt, $lte, $in, $nin, $exists, $and and $or,
    with implicit AND across top-level keys. On a list-valued field $eq and
    $in match when any element matches. A missing field only satisfies $ne,
    $nin and {"$exists": false}.
    """
    if not filter_dict:
        return True

    for key, condition in filter_dict.items():
        if key == "$and":
            if not all(matches_filter(metadata, sub) for sub in condition):
                return False
            continue
        if key == "$or":
            if not any(matches_filter(metadata, sub) for sub in condition):
                return False
            continue

        present = key in metadata and metadata[key] is not None
        value = metadata.get(key)
        if not isinstance(condition, dict):
            condition = {"$eq": condition}
        for operator, operand in condition.items():
            if not _matches_condition(value, present, operator, operand):
                return False

    return True


class FAISSVectorDB(VectorDBService):
    """FAISS implementation of vector database service (fallback)."""

    def __init__(self, index_path: Optional[str] = None, dimension: Optional[int] = None):
        self.index = None
        self.metadata_store: Dict[str, Dict[str, Any]] = {}
        self.id_to_index: Dict[str, int] = {}
        self.index_to_id: Dict[int, str] = {}
        self.dimension = dimension or settings.embedding_dimension
        self.faiss_index_path = index_path or settings.faiss_index_path
        self.metadata_path = f"{os.path.splitext(self.faiss_index_path)[0]}_metadata.pkl"

    async def initialize(self) -> None:
        """Initialize FAISS index."""
        try:
            if os.path.exists(self.faiss_index_path) and os.path.exists(self.metadata_path):
                logger.info("Loading existing FAISS index from disk")
                self.index = faiss.read_index(self.faiss_index_path)
                with open(self.metadata_path, "rb") as f:
                    data = pickle.load(f)
                    self.metadata_store = data.get("metadata", {})
                    self.id_to_index = data.get("id_to_index", {})
                    self.index_to_id = data.get("index_to_id", {})
            else:
                logger.info("Creating new FAISS index")
                # Inner product on unit vectors is cosine similarity
                self.index = faiss.IndexIDMap2(faiss.IndexFlatIP(self.dimension))

            logger.warning(
                "Using FAISS as fallback vector database. Data stored locally.",
                extra={"index_path": self.faiss_index_path}
            )

        except Exception as e:
            logger.error(f"Failed to initialize FAISS: {e}", extra={"error": str(e)})
            raise

    def _require_index(self):
        if self.index is None:
            raise RuntimeError("FAISS index not initialized")
        return self.index

    def _save_index(self) -> None:
        """Save FAISS index and metadata to disk."""
        faiss.write_index(self.index, self.faiss_index_path)
        with open(self.metadata_path, "wb") as f:
            pickle.dump({
                "metadata": self.metadata_store,
                "id_to_index": self.id_to_index,
                "index_to_id": self.index_to_id,
            }, f)

    def _to_unit_matrix(self, embeddings: List[List[float]]) -> np.ndarray:
        matrix = np.asarray(embeddings, dtype=np.float32).reshape(len(embeddings), -1)
        if matrix.shape[1] != self.dimension:
            raise ValueError(f"Expected dimension {self.dimension}, got {matrix.shape[1]}")
        norms = np.linalg.norm(matrix, axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        return matrix / norms

    async def upsert_vectors(self, vectors: List[Dict[str, Any]]) -> None:
        """Upsert vectors to FAISS, replacing any existing vector with the same id."""
        index = self._require_index()

        def _upsert():
            embeddings = []
            labels = []
            for vec_data in vectors:
                vector_id = vec_data.get("id")
                embedding = vec_data.get("embedding")
                if not vector_id or not embedding:
                    continue
                vector_id = str(vector_id)

                if vector_id in self.id_to_index:
                    label = self.id_to_index[vector_id]
                    index.remove_ids(np.array([label], dtype=np.int64))
                else:
                    label = max(self.index_to_id, default=-1) + 1
                    self.id_to_index[vector_id] = label
                    self.index_to_id[label] = vector_id

                embeddings.append(embedding)
                labels.append(label)
                self.metadata_store[vector_id] = dict(vec_data.get("metadata", {}))

            if not embeddings:
                return 0
            index.add_with_ids(self._to_unit_matrix(embeddings), np.array(labels, dtype=np.int64))
            self._save_index()
            return len(embeddings)

        count = await _run_bounded("upsert", _upsert)
        if count > 0:
            logger.info(f"Upserted {count} vectors to FAISS")

    async def query_vectors(
        self,
        query_vector: List[float],
        top_k: int,
        filter_dict: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Query similar vectors from FAISS, evaluating the metadata filter in-process."""
        index = self._require_index()

        def _query():
            if index.ntotal == 0:
                return []
            query_array = self._to_unit_matrix([query_vector])

            # With a filter every vector is scored so that filtering never starves top_k
            k = index.ntotal if filter_dict else min(top_k, index.ntotal)
            distances, labels = index.search(query_array, k)

            matches = []
            for distance, label in zip(distances[0], labels[0]):
                if label == -1:
                    continue
                vector_id = self.index_to_id.get(int(label))
                if vector_id is None:
                    continue
                metadata = self.metadata_store.get(vector_id, {})
                if not matches_filter(metadata, filter_dict):
                    continue
                matches.append({
                    "id": vector_id,
                    "score": float(distance),
                    "metadata": dict(metadata)
                })
                if len(matches) >= top_k:
                    break
            return matches

        return await _run_bounded("query", _query)

    async def fetch_by_id(self, vector_id: str) -> Optional[Dict[str, Any]]:
        metadata = self.metadata_store.get(str(vector_id))
        return dict(metadata) if metadata is not None else None

    async def delete_vectors(self, ids: List[str]) -> None:
        """Delete vectors from FAISS."""
        index = self._require_index()

        def _delete():
            labels = []
            for vector_id in map(str, ids):
                label = self.id_to_index.pop(vector_id, None)
                if label is None:
                    continue
                self.index_to_id.pop(label, None)
                self.metadata_store.pop(vector_id, None)
                labels.append(label)
            if labels:
                index.remove_ids(np.array(labels, dtype=np.int64))
                self._save_index()
            return len(labels)

        count = await _run_bounded("delete", _delete)
        logger.info(f"Deleted {count} vectors from FAISS")

    async def list_ids(self) -> List[str]:
        return list(self.id_to_index)

    async def update_metadata(self, vector_id: str, metadata: Dict[str, Any]) -> None:
        vector_id = str(vector_id)
        if vector_id not in self.metadata_store:
            raise KeyError(f"Unknown vector id: {vector_id}")
        self.metadata_store[vector_id].update(metadata)
        await _run_bounded("update", self._save_index)


async def get_vector_db_service() -> VectorDBService:
    """
    Factory function to get appropriate vector DB service.
    Uses Pinecone if configured, otherwise falls back to FAISS.
    """
    if settings.use_pinecone:
        try:
            service = PineconeVectorDB()
            await service.initialize()
            return service
        except Exception as e:
            logger.warning(
                f"Failed to initialize Pinecone, falling back to FAISS: {e}",
                extra={"error": str(e)}
            )

    service = FAISSVectorDB()
    await service.initialize()
    return service
