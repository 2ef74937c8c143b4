"""Configuration management using pydantic-settings."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from doc_assistant.models.vector import DistanceMetric
from doc_assistant.utils.errors import ConfigurationError


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMSettings(BaseSettings):
    """Chat-completion provider configuration (LiteLLM)."""

    model_config = SettingsConfigDict(env_prefix="LLM_", case_sensitive=False)

    api_key: Optional[str] = Field(default=None, description="LLM API key. Env var: LLM_API_KEY")
    api_base: Optional[str] = Field(
        default="https://dashscope.aliyuncs.com/compatible-mode/v1",
        description="OpenAI-compatible endpoint. Env var: LLM_API_BASE",
    )
    model: str = Field(
        default="openai/qwen-turbo",
        description="Model name in LiteLLM format. Env var: LLM_MODEL",
    )
    temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Sampling temperature. Env var: LLM_TEMPERATURE"
    )
    timeout: float = Field(default=60.0, description="Request timeout in seconds. Env var: LLM_TIMEOUT")

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration (OpenAI-compatible API)."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_", case_sensitive=False)

    api_key: Optional[str] = Field(
        default=None,
        description="Embedding API key; falls back to LLM_API_KEY. Env var: EMBEDDING_API_KEY",
    )
    api_base: Optional[str] = Field(
        default=None,
        description="Embedding endpoint; falls back to LLM_API_BASE. Env var: EMBEDDING_API_BASE",
    )
    model: str = Field(default="text-embedding-v3", description="Embedding model. Env var: EMBEDDING_MODEL")
    dimension: int = Field(
        default=1024, ge=1, description="Embedding vector dimension. Env var: EMBEDDING_DIMENSION"
    )
    batch_size: int = Field(
        default=10, ge=1, description="Texts per provider request. Env var: EMBEDDING_BATCH_SIZE"
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds. Env var: EMBEDDING_TIMEOUT")

    @property
    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_", case_sensitive=False)

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant URL, or ':memory:' for the embedded local mode. Env var: QDRANT_URL",
    )
    api_key: Optional[str] = Field(default=None, description="Qdrant API key. Env var: QDRANT_API_KEY")
    timeout: int = Field(default=30, description="Request timeout in seconds. Env var: QDRANT_TIMEOUT")
    collection_name: str = Field(
        default="smart_assessment_docs",
        description="Collection holding documentation chunks. Env var: QDRANT_COLLECTION_NAME",
    )
    distance: DistanceMetric = Field(
        default=DistanceMetric.COSINE, description="Distance metric. Env var: QDRANT_DISTANCE"
    )

    @property
    def is_local(self) -> bool:
        """Check if using the embedded in-memory instance."""
        return self.url == ":memory:"


class ChunkingSettings(BaseSettings):
    """Text chunking configuration (sizes in characters)."""

    model_config = SettingsConfigDict(env_prefix="CHUNK_", case_sensitive=False)

    size: int = Field(default=500, description="Maximum characters per chunk. Env var: CHUNK_SIZE")
    overlap: int = Field(
        default=50, description="Characters shared by adjacent chunks. Env var: CHUNK_OVERLAP"
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "ChunkingSettings":
        """Require 1 <= size and 0 <= overlap < size."""
        if self.size < 1:
            raise ValueError("CHUNK_SIZE must be >= 1")
        if self.overlap < 0 or self.overlap >= self.size:
            raise ValueError("CHUNK_OVERLAP must be >= 0 and less than CHUNK_SIZE")
        return self


class RetrievalSettings(BaseSettings):
    """Retrieval, context window and conversation history configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    top_k_results: int = Field(default=5, ge=1, description="Default top-K. Env var: TOP_K_RESULTS")
    score_threshold: Optional[float] = Field(
        default=None,
        description="Minimum similarity for a result to be returned. Env var: SCORE_THRESHOLD",
    )
    max_context_length: int = Field(
        default=4000,
        ge=1,
        description="Maximum characters of retrieved context in a prompt. Env var: MAX_CONTEXT_LENGTH",
    )
    max_history_messages: int = Field(
        default=10,
        ge=0,
        description="Most recent turns included in a prompt. Env var: MAX_HISTORY_MESSAGES",
    )
    history_capacity: int = Field(
        default=20,
        ge=1,
        description="Turns kept in conversation state. Env var: HISTORY_CAPACITY",
    )


class IngestionSettings(BaseSettings):
    """Documentation source and ingestion batching configuration."""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    docs_path: Path = Field(default=Path("docs"), description="Documentation root. Env var: DOCS_PATH")
    ingestion_batch_size: int = Field(
        default=10, ge=1, description="Chunks embedded/upserted per batch. Env var: INGESTION_BATCH_SIZE"
    )
    # Stored as a string to avoid JSON parsing of list values from the environment.
    file_types_str: str = Field(
        default="md",
        alias="file_types",
        description="Comma-separated file extensions to load. Env var: FILE_TYPES",
    )

    @property
    def file_types(self) -> List[str]:
        """Get file extensions as a list."""
        return [ft.strip().lower().lstrip(".") for ft in self.file_types_str.split(",") if ft.strip()]


class PromptSettings(BaseSettings):
    """System prompt / persona configuration."""

    model_config = SettingsConfigDict(env_prefix="PROMPT_", case_sensitive=False)

    product_name: str = Field(default="Smart Assessment", description="Product the documentation describes")
    system_prompt: str = Field(
        default="",
        description="System persona prompt (optional; falls back to built-in default if empty)",
    )
    no_context_answer: str = Field(
        default=(
            "Sorry, I could not find relevant information in the documentation. "
            "Please try rephrasing your question, or consult the full official documentation."
        ),
        description="Answer returned when retrieval finds nothing",
    )


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="doc-assistant", description="Application name. Env var: APP_NAME")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment. Env var: ENVIRONMENT"
    )
    debug: bool = Field(default=False, description="Enable debug mode. Env var: DEBUG")
    log_level: str = Field(default="INFO", description="Logging level. Env var: LOG_LEVEL")

    # Sub-settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    chunking: ChunkingSettings = Field(default_factory=ChunkingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    prompt: PromptSettings = Field(default_factory=PromptSettings)

    @field_validator("environment", mode="before")
    @classmethod
    def parse_environment(cls, v):
        """Parse environment from string."""
        if isinstance(v, str):
            try:
                return Environment(v.lower())
            except ValueError:
                return Environment.DEVELOPMENT
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def share_provider_credentials(self) -> "Settings":
        """Let the embedding provider reuse the LLM key and endpoint when unset."""
        if not self.embedding.api_key and self.llm.api_key:
            self.embedding.api_key = self.llm.api_key
        if not self.embedding.api_base and self.llm.api_base:
            self.embedding.api_base = self.llm.api_base
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def validate_runtime(self, require_documents: bool = True) -> None:
        """Fail fast when required values are absent.

        Args:
            require_documents: Also require the documentation root to exist
                (needed for ingestion, not for answering queries).

        Raises:
            ConfigurationError: On the first missing value.
        """
        if not self.llm.is_configured:
            raise ConfigurationError("LLM API key is not configured", setting="LLM_API_KEY")
        if not self.embedding.is_configured:
            raise ConfigurationError("Embedding API key is not configured", setting="EMBEDDING_API_KEY")
        if require_documents and not self.ingestion.docs_path.exists():
            raise ConfigurationError(
                f"Documentation path does not exist: {self.ingestion.docs_path}",
                setting="DOCS_PATH",
            )


# Global settings instance (entry points only; components receive Settings explicitly)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        try:
            _settings = Settings()
        except PydanticValidationError as e:
            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": e.errors(include_url=False)},
            ) from e
    return _settings
