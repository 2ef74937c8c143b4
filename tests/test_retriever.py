from unittest.mock import AsyncMock, MagicMock

import pytest

from doc_assistant.models.vector import ScoredResult
from doc_assistant.services.retriever import Retriever
from doc_assistant.utils.errors import ValidationError


@pytest.fixture
def retriever(settings, fake_embedder, qdrant_service):
    return Retriever(settings, fake_embedder, qdrant_service)


@pytest.mark.asyncio
async def test_most_relevant_passage_first(retriever, index_texts):
    await index_texts(
        [
            ("billing invoices are sent monthly", {"source": "billing.md"}),
            ("install the package with the installer", {"source": "install.md"}),
            ("reset your password from the login page", {"source": "account.md"}),
        ]
    )
    results = await retriever.retrieve("install package", k=2)

    assert len(results) == 2
    assert results[0].source == "install.md"
    assert results[0].score > results[1].score


@pytest.mark.asyncio
async def test_empty_collection_returns_nothing(retriever, qdrant_service, settings):
    await qdrant_service.ensure_collection(settings.qdrant.collection_name, retriever.embedding_service.dimension)
    assert await retriever.retrieve("anything") == []


@pytest.mark.asyncio
async def test_filter_is_applied(retriever, index_texts):
    await index_texts(
        [
            ("install on linux", {"source": "linux.md", "category": "install"}),
            ("install on windows", {"source": "windows.md", "category": "faq"}),
        ]
    )
    results = await retriever.retrieve("install", filter={"category": "faq"})
    assert [r.source for r in results] == ["windows.md"]


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "   "])
async def test_blank_query_rejected(retriever, query):
    with pytest.raises(ValidationError):
        await retriever.retrieve(query)


@pytest.mark.asyncio
async def test_invalid_k_rejected(retriever):
    with pytest.raises(ValidationError):
        await retriever.retrieve("install", k=0)


@pytest.mark.asyncio
async def test_defaults_from_settings(settings):
    settings.retrieval.top_k_results = 3
    settings.retrieval.score_threshold = 0.4
    embedder = MagicMock()
    embedder.embed = AsyncMock(return_value=[0.5, 0.5])
    index = MagicMock()
    hit = ScoredResult(id="1", content="text", score=0.83, metadata={"source": "a.md"})
    index.search = AsyncMock(return_value=[hit])

    results = await Retriever(settings, embedder, index).retrieve("question")

    assert results == [hit]
    index.search.assert_awaited_once_with(
        "test_docs", [0.5, 0.5], 3, filter=None, score_threshold=0.4
    )
