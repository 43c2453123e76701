"""Service for generating embeddings using OLLAMA."""
import asyncio
from typing import List, Optional
import httpx
from httpx import Timeout
import numpy as np

from cv_search.config import settings
from cv_search.exceptions import UpstreamUnavailableError
from cv_search.utils.logging import get_logger

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating embeddings using OLLAMA API."""

    service_name = "embedding"

    def __init__(self, ollama_host: Optional[str] = None):
        self.ollama_host = (ollama_host or settings.ollama_host).rstrip("/")
        self.primary_model = settings.embedding_model
        self.fallback_model = settings.embedding_fallback_model
        self.model: Optional[str] = None
        self.embedding_dimension = settings.embedding_dimension
        self.timeout = Timeout(settings.embedding_timeout)
        self.max_chars = settings.max_embedding_chars

    async def _initialize_model(self) -> str:
        """Check which embedding model is available and set it."""
        if self.model:
            return self.model

        # Try primary model first
        if await self._check_model_available(self.primary_model):
            self.model = self.primary_model
            logger.info(f"Using embedding model: {self.primary_model}")
            return self.model

        # Fallback to secondary model
        if await self._check_model_available(self.fallback_model):
            self.model = self.fallback_model
            logger.warning(f"Primary model unavailable, using fallback: {self.fallback_model}")
            return self.model

        raise UpstreamUnavailableError(
            self.service_name,
            f"neither {self.primary_model} nor {self.fallback_model} is available at {self.ollama_host}",
        )

    async def _check_model_available(self, model_name: str) -> bool:
        """Check if a model is available via OLLAMA."""
        try:
            async with httpx.AsyncClient(timeout=Timeout(10.0)) as client:
                response = await client.get(f"{self.ollama_host}/api/tags")
                response.raise_for_status()
                models = response.json().get("models", [])
                return any(m.get("name", "").startswith(model_name) for m in models)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Failed to check model availability: {e}", extra={"model": model_name})
            return False

    def _to_unit_vector(self, embedding: List[float]) -> List[float]:
        """L2-normalize and validate an embedding returned by OLLAMA."""
        if not embedding:
            raise ValueError("Empty embedding returned")

        embedding_array = np.asarray(embedding, dtype=np.float64)
        if embedding_array.ndim != 1 or not np.all(np.isfinite(embedding_array)):
            raise ValueError("Embedding contains non-finite values")

        norm = np.linalg.norm(embedding_array)
        if norm == 0:
            raise ValueError("Embedding is a zero vector")

        return (embedding_array / norm).tolist()

    async def generate_embedding(self, text: str, retries: Optional[int] = None) -> List[float]:
        """
        Generate an L2-normalized embedding for a single text with retry logic.

        Text longer than MAX_EMBEDDING_CHARS is truncated. Transport errors are
        retried with exponential backoff; a vector of the wrong dimension is
        not retried.
        """
        retries = retries or settings.embedding_retries
        await self._initialize_model()

        prompt = (text or "")[: self.max_chars]
        embedding: Optional[List[float]] = None

        for attempt in range(retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(
                        f"{self.ollama_host}/api/embeddings",
                        json={
                            "model": self.model,
                            "prompt": prompt,
                        }
                    )
                    response.raise_for_status()
                    embedding = self._to_unit_vector(response.json().get("embedding", []))
                    break

            except (httpx.HTTPError, ValueError) as e:
                if attempt < retries - 1:
                    wait_time = 2 ** attempt  # Exponential backoff
                    logger.warning(
                        f"Embedding generation failed, retrying in {wait_time}s: {e}",
                        extra={"attempt": attempt + 1, "error": str(e)}
                    )
                    await asyncio.sleep(wait_time)
                else:
                    logger.error(
                        f"Failed to generate embedding after {retries} attempts: {e}",
                        extra={"model": self.model, "error": str(e)}
                    )
                    raise UpstreamUnavailableError(self.service_name, str(e), cause=e) from e

        if embedding is None:
            raise UpstreamUnavailableError(self.service_name, "no embedding produced")

        if len(embedding) != self.embedding_dimension:
            raise UpstreamUnavailableError(
                self.service_name,
                f"model {self.model} returned dimension {len(embedding)}, "
                f"index expects {self.embedding_dimension}",
            )

        return embedding
