"""Pytest configuration and fixtures for doc-assistant tests."""

import re
from typing import Dict, List, Optional, Sequence

import pytest
from qdrant_client import QdrantClient

from doc_assistant.config import (
    ChunkingSettings,
    EmbeddingSettings,
    IngestionSettings,
    LLMSettings,
    PromptSettings,
    QdrantSettings,
    RetrievalSettings,
    Settings,
)
from doc_assistant.models.vector import IndexPoint
from doc_assistant.services.qdrant_service import QdrantService

TEST_DIMENSION = 32
TEST_COLLECTION = "test_docs"


class FakeEmbeddingService:
    """Deterministic bag-of-words embedder.

    Each distinct word gets its own bucket in order of first appearance, so
    texts sharing words are similar and texts sharing none are nearly
    orthogonal. A small baseline keeps every vector non-zero.
    """

    def __init__(self, dimension: int = TEST_DIMENSION, fail_on: Optional[str] = None, error=None):
        self.dimension = dimension
        self.fail_on = fail_on
        self.error = error
        self.batch_calls: List[List[str]] = []
        self._buckets: Dict[str, int] = {}

    def vector(self, text: str) -> List[float]:
        vector = [0.01] * self.dimension
        for word in re.findall(r"\w+", text.lower()):
            if word not in self._buckets:
                self._buckets[word] = len(self._buckets) % self.dimension
            vector[self._buckets[word]] += 1.0
        return vector

    def _check(self, texts: Sequence[str]) -> None:
        if self.fail_on and any(self.fail_on in t for t in texts):
            raise self.error

    async def embed(self, text: str) -> List[float]:
        self._check([text])
        return self.vector(text)

    async def embed_batch(self, texts: List[str]) -> List[List[float]]:
        self.batch_calls.append(list(texts))
        self._check(texts)
        return [self.vector(t) for t in texts]


@pytest.fixture
def settings(tmp_path):
    """Settings built explicitly, independent of the environment and .env files."""
    return Settings(
        _env_file=None,
        environment="development",
        log_level="DEBUG",
        llm=LLMSettings(api_key="test-llm-key", api_base="http://llm.test/v1", model="openai/test-model"),
        embedding=EmbeddingSettings(
            api_key="test-embedding-key",
            api_base="http://embedding.test/v1",
            model="test-embedding",
            dimension=TEST_DIMENSION,
            batch_size=4,
        ),
        qdrant=QdrantSettings(url=":memory:", collection_name=TEST_COLLECTION),
        chunking=ChunkingSettings(size=200, overlap=20),
        retrieval=RetrievalSettings(
            top_k_results=5,
            score_threshold=None,
            max_context_length=4000,
            max_history_messages=10,
            history_capacity=20,
        ),
        ingestion=IngestionSettings(docs_path=tmp_path / "docs", ingestion_batch_size=2),
        prompt=PromptSettings(product_name="Smart Assessment"),
    )


@pytest.fixture
def fake_embedder():
    return FakeEmbeddingService()


@pytest.fixture
def embedder_factory():
    """Build fake embedders with custom failure behaviour."""
    return FakeEmbeddingService


@pytest.fixture
def qdrant_service(settings):
    """QdrantService backed by a fresh embedded in-memory instance."""
    return QdrantService(settings, client=QdrantClient(location=":memory:"))


@pytest.fixture
def index_texts(qdrant_service, fake_embedder):
    """Return a coroutine that indexes ``(text, metadata)`` pairs into the test collection."""

    async def _index(entries):
        await qdrant_service.ensure_collection(TEST_COLLECTION, TEST_DIMENSION)
        points = [
            IndexPoint(
                id=f"00000000-0000-0000-0000-{i:012d}",
                vector=fake_embedder.vector(text),
                content=text,
                metadata=metadata,
            )
            for i, (text, metadata) in enumerate(entries, start=1)
        ]
        return await qdrant_service.upsert(TEST_COLLECTION, points)

    return _index
