"""Vector index models."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

Vector = List[float]


class DistanceMetric(str, Enum):
    """Supported vector distance metrics."""

    COSINE = "cosine"
    DOT = "dot"
    EUCLID = "euclid"


class IndexPoint(BaseModel):
    """A (vector, payload) pair owned by the vector index once upserted."""

    id: str = Field(..., description="UUID string generated at ingest time")
    vector: Vector = Field(..., description="Embedding vector")
    content: str = Field(..., description="Chunk text stored in the payload")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Chunk metadata stored in the payload")

    def to_payload(self) -> Dict[str, Any]:
        return {"content": self.content, "metadata": self.metadata}


class ScoredResult(BaseModel):
    """A search hit. Produced only by search, never persisted."""

    id: Optional[str] = Field(default=None, description="Point ID")
    content: str = Field(..., description="Chunk text")
    score: float = Field(..., description="Similarity score; higher is more similar")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Chunk metadata")

    @property
    def source(self) -> str:
        return str(self.metadata.get("source") or "Unknown")


class CollectionStats(BaseModel):
    """Point counts and status for a collection."""

    collection_name: str
    point_count: int = 0
    vector_count: Optional[int] = None
    status: str = "unknown"
