from unittest.mock import AsyncMock

import pytest

from doc_assistant.services.chunking_service import Chunker
from doc_assistant.services.document_loader import DocumentLoader
from doc_assistant.services.ingestion_service import IngestionService, create_ingestion_service
from doc_assistant.utils.errors import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingError,
    ServiceConnectionError,
    VectorIndexError,
)


@pytest.fixture
def docs_path(settings):
    root = settings.ingestion.docs_path
    (root / "guide").mkdir(parents=True)
    (root / "README.md").write_text("Welcome to the product documentation.", encoding="utf-8")
    (root / "guide" / "install.md").write_text(
        "\n\n".join(f"Step {i}: run the installer and follow the prompts." for i in range(12)),
        encoding="utf-8",
    )
    return root


def make_service(settings, embedder, qdrant_service):
    return IngestionService(
        settings,
        loader=DocumentLoader(settings.ingestion.docs_path, settings.ingestion.file_types),
        chunker=Chunker(settings.chunking.size, settings.chunking.overlap),
        embedding_service=embedder,
        vector_index=qdrant_service,
    )


@pytest.mark.asyncio
async def test_ingest_indexes_all_chunks(settings, docs_path, fake_embedder, qdrant_service):
    report = await make_service(settings, fake_embedder, qdrant_service).ingest()

    assert report.documents_loaded == 2
    assert report.documents_indexed == 2
    assert report.failed_sources == []
    assert report.chunks_indexed > 2
    stats = await qdrant_service.stats(settings.qdrant.collection_name)
    assert stats.point_count == report.chunks_indexed


@pytest.mark.asyncio
async def test_embedding_batches_respect_batch_size(settings, docs_path, fake_embedder, qdrant_service):
    await make_service(settings, fake_embedder, qdrant_service).ingest()
    assert fake_embedder.batch_calls
    assert all(len(batch) <= settings.ingestion.ingestion_batch_size for batch in fake_embedder.batch_calls)


@pytest.mark.asyncio
async def test_indexed_payload_keeps_chunk_metadata(settings, docs_path, fake_embedder, qdrant_service):
    await make_service(settings, fake_embedder, qdrant_service).ingest()

    results = await qdrant_service.search(
        settings.qdrant.collection_name,
        fake_embedder.vector("Welcome to the product documentation."),
        k=1,
    )
    assert results[0].source == "README.md"
    assert results[0].metadata["category"] == "root"
    assert results[0].metadata["chunk_index"] == 0
    assert results[0].metadata["total_chunks"] == 1


@pytest.mark.asyncio
async def test_reset_replaces_previous_run(settings, docs_path, fake_embedder, qdrant_service):
    service = make_service(settings, fake_embedder, qdrant_service)
    first = await service.ingest()
    await service.ingest(reset=True)
    stats = await qdrant_service.stats(settings.qdrant.collection_name)
    assert stats.point_count == first.chunks_indexed


@pytest.mark.asyncio
async def test_without_reset_points_accumulate(settings, docs_path, fake_embedder, qdrant_service):
    service = make_service(settings, fake_embedder, qdrant_service)
    first = await service.ingest()
    await service.ingest(reset=False)
    stats = await qdrant_service.stats(settings.qdrant.collection_name)
    assert stats.point_count == 2 * first.chunks_indexed


@pytest.mark.asyncio
async def test_provider_failure_skips_only_that_document(settings, docs_path, embedder_factory, qdrant_service):
    embedder = embedder_factory(fail_on="installer", error=EmbeddingError("rate limited", model="test-embedding"))
    report = await make_service(settings, embedder, qdrant_service).ingest()

    assert report.failed_sources == ["guide/install.md"]
    assert report.documents_indexed == 1
    stats = await qdrant_service.stats(settings.qdrant.collection_name)
    assert stats.point_count == report.chunks_indexed == 1


@pytest.mark.asyncio
async def test_unreachable_provider_is_fatal(settings, docs_path, embedder_factory, qdrant_service):
    embedder = embedder_factory(fail_on="Welcome", error=ServiceConnectionError("embedding"))
    with pytest.raises(ServiceConnectionError):
        await make_service(settings, embedder, qdrant_service).ingest()


@pytest.mark.asyncio
async def test_dimension_mismatch_is_fatal(settings, docs_path, embedder_factory, qdrant_service):
    embedder = embedder_factory(fail_on="Welcome", error=DimensionMismatchError(expected=32, actual=16))
    with pytest.raises(DimensionMismatchError):
        await make_service(settings, embedder, qdrant_service).ingest()


@pytest.mark.asyncio
async def test_missing_docs_root(settings, fake_embedder, qdrant_service):
    with pytest.raises(ConfigurationError):
        await make_service(settings, fake_embedder, qdrant_service).ingest()


@pytest.mark.asyncio
async def test_rejected_upsert_skips_only_that_document(settings, docs_path, fake_embedder, qdrant_service):
    real_upsert = qdrant_service.upsert

    async def upsert(collection_name, points):
        if any(p.metadata["source"] == "guide/install.md" for p in points):
            raise VectorIndexError("Qdrant upsert failed: payload too large")
        return await real_upsert(collection_name, points)

    qdrant_service.upsert = AsyncMock(side_effect=upsert)
    report = await make_service(settings, fake_embedder, qdrant_service).ingest()

    assert report.failed_sources == ["guide/install.md"]
    assert report.documents_indexed == 1
    stats = await qdrant_service.stats(settings.qdrant.collection_name)
    assert stats.point_count == report.chunks_indexed == 1


class TestCreateIngestionService:
    def test_missing_api_keys(self, settings, docs_path):
        settings.llm.api_key = None
        with pytest.raises(ConfigurationError) as exc_info:
            create_ingestion_service(settings)
        assert exc_info.value.details["setting"] == "LLM_API_KEY"

    def test_missing_docs_root(self, settings):
        with pytest.raises(ConfigurationError) as exc_info:
            create_ingestion_service(settings)
        assert exc_info.value.details["setting"] == "DOCS_PATH"

    def test_wires_components(self, settings, docs_path):
        service = create_ingestion_service(settings)
        assert service.collection_name == settings.qdrant.collection_name
        assert service.loader.docs_path == docs_path
        assert service.batch_size == settings.ingestion.ingestion_batch_size
