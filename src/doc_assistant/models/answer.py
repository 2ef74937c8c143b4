"""Answer, attribution and ingestion report models."""

from typing import List, Optional

from pydantic import BaseModel, Field


class SourceAttribution(BaseModel):
    """A retrieved passage an answer was grounded on."""

    source: str = Field(..., description="Source document identifier")
    score: float = Field(..., description="Similarity score of the passage")
    preview: str = Field(..., description="Leading characters of the passage")


class GeneratedAnswer(BaseModel):
    """Text returned by the language model."""

    answer: str
    model: Optional[str] = None


class QueryAnswer(BaseModel):
    """Result of a documentation query, successful or not."""

    question: str
    answer: str
    sources: List[SourceAttribution] = Field(default_factory=list)
    context_used: bool = False
    error: Optional[str] = Field(default=None, description="Error message when the query failed")


class IngestionReport(BaseModel):
    """Summary of an ingestion run."""

    collection_name: str
    documents_loaded: int = 0
    documents_indexed: int = 0
    chunks_indexed: int = 0
    failed_sources: List[str] = Field(default_factory=list)
