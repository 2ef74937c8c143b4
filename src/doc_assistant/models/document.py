"""Document and chunk models for ingestion."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A loaded documentation file. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Plain text content")
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Source metadata (source, category, file_name, ...)"
    )

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", "Unknown"))


class Chunk(BaseModel):
    """A bounded-size fragment of a document, the unit of embedding and retrieval."""

    content: str = Field(..., description="Chunk text content")
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Parent metadata plus chunk_index (0-based) and total_chunks",
    )

    @property
    def chunk_index(self) -> int:
        return int(self.metadata["chunk_index"])

    @property
    def source(self) -> str:
        return str(self.metadata.get("source", "Unknown"))
