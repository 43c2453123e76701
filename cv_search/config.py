"""Configuration management using Pydantic Settings."""
from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, model_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Pinecone Configuration
    pinecone_api_key: Optional[str] = Field(None, alias="PINECONE_API_KEY")
    pinecone_index_name: str = Field("cv-search", alias="PINECONE_INDEX_NAME")
    pinecone_cloud: str = Field("aws", alias="PINECONE_CLOUD")
    pinecone_region: str = Field("us-east-1", alias="PINECONE_REGION")
    vector_query_timeout: float = Field(15.0, alias="VECTOR_QUERY_TIMEOUT")

    # Local FAISS fallback
    faiss_index_path: str = Field("faiss_index.pkl", alias="FAISS_INDEX_PATH")

    # OLLAMA Embedding Configuration
    ollama_host: str = Field("http://localhost:11434", alias="OLLAMA_HOST")
    embedding_model: str = Field("nomic-embed-text", alias="EMBEDDING_MODEL")
    embedding_fallback_model: str = Field("mxbai-embed-large", alias="EMBEDDING_FALLBACK_MODEL")
    embedding_dimension: int = Field(768, alias="EMBEDDING_DIMENSION")
    embedding_timeout: float = Field(30.0, alias="EMBEDDING_TIMEOUT")
    embedding_retries: int = Field(3, alias="EMBEDDING_RETRIES")
    max_embedding_chars: int = Field(6000, alias="MAX_EMBEDDING_CHARS")

    # Retrieval tuning
    search_top_k: int = Field(20, alias="SEARCH_TOP_K")
    fallback_top_k: int = Field(30, alias="FALLBACK_TOP_K")
    similarity_threshold: float = Field(0.3, alias="SIMILARITY_THRESHOLD")
    fallback_similarity_threshold: float = Field(0.2, alias="FALLBACK_SIMILARITY_THRESHOLD")

    # Monitoring
    sentry_dsn: Optional[str] = Field(None, alias="SENTRY_DSN")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    @field_validator("search_top_k", "fallback_top_k", "embedding_retries", "embedding_dimension")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Pool sizes, retry counts and dimensions must be positive."""
        if v < 1:
            raise ValueError("value must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_fallback_is_looser(self) -> "Settings":
        """The fallback pass must search a larger pool with a lower score floor."""
        if self.fallback_top_k <= self.search_top_k:
            raise ValueError("FALLBACK_TOP_K must be greater than SEARCH_TOP_K")
        if self.fallback_similarity_threshold >= self.similarity_threshold:
            raise ValueError(
                "FALLBACK_SIMILARITY_THRESHOLD must be lower than SIMILARITY_THRESHOLD"
            )
        return self

    @property
    def use_pinecone(self) -> bool:
        """Check if Pinecone should be used."""
        return bool(self.pinecone_api_key and self.pinecone_api_key.strip())

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
        populate_by_name = True


# Global settings instance
settings = Settings()
