"""Ingestion service: load, chunk, embed and index the documentation tree."""

import logging
import uuid
from typing import List, Optional

from doc_assistant.config import Settings, get_settings
from doc_assistant.models.answer import IngestionReport
from doc_assistant.models.document import Chunk, Document
from doc_assistant.models.vector import IndexPoint
from doc_assistant.services.chunking_service import Chunker
from doc_assistant.services.document_loader import DocumentLoader
from doc_assistant.services.embedding_service import EmbeddingService
from doc_assistant.services.qdrant_service import QdrantService
from doc_assistant.utils.errors import ProviderError, ValidationError, VectorIndexError
from doc_assistant.utils.logging import get_logger, log_event, setup_logging

logger = get_logger("ingestion_service")


class IngestionService:
    """
    Build the documentation collection.

    Processing pipeline:
    1. Load documentation files
    2. Reset (or ensure) the collection
    3. Per document: chunk, embed in batches, then upsert all of its points

    A document's points are written only after all of its chunks are embedded,
    so a provider failure never leaves a partially indexed document. A rejected
    upsert fails only its own document; batches written before it stay indexed.
    """

    def __init__(
        self,
        settings: Settings,
        loader: DocumentLoader,
        chunker: Chunker,
        embedding_service: EmbeddingService,
        vector_index: QdrantService,
    ) -> None:
        self.settings = settings
        self.loader = loader
        self.chunker = chunker
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.collection_name = settings.qdrant.collection_name
        self.batch_size = settings.ingestion.ingestion_batch_size

    async def ingest(self, reset: bool = True) -> IngestionReport:
        """
        Index every documentation file.

        Args:
            reset: Drop and recreate the collection first (otherwise points are added)

        Returns:
            IngestionReport with counts and the sources that failed

        Raises:
            ConfigurationError: If the documentation root does not exist
            ServiceConnectionError: If the index or the embedding provider is unreachable
            DimensionMismatchError: If vectors disagree with the collection
            NotFoundError: If the collection disappears mid-run
        """
        documents = self.loader.load_all_documents()
        report = IngestionReport(collection_name=self.collection_name, documents_loaded=len(documents))

        dimension = self.embedding_service.dimension
        metric = self.settings.qdrant.distance
        if reset:
            await self.vector_index.reset(self.collection_name, dimension, metric)
        else:
            await self.vector_index.ensure_collection(self.collection_name, dimension, metric)

        for document in documents:
            try:
                indexed = await self.ingest_document(document)
            except (ProviderError, ValidationError, VectorIndexError) as e:
                log_event(
                    logger,
                    f"Failed to index {document.source}: {e.message}",
                    level=logging.ERROR,
                    collection=self.collection_name,
                    source=document.source,
                    error_code=e.code,
                )
                report.failed_sources.append(document.source)
                continue

            if indexed:
                report.documents_indexed += 1
                report.chunks_indexed += indexed

        log_event(
            logger,
            "Ingestion complete",
            collection=self.collection_name,
            documents=f"{report.documents_indexed}/{report.documents_loaded}",
            chunks=report.chunks_indexed,
            failed=len(report.failed_sources),
        )
        return report

    async def ingest_document(self, document: Document) -> int:
        """
        Chunk, embed and index one document.

        Returns:
            Number of points written
        """
        chunks = self.chunker.split_documents([document])
        if not chunks:
            return 0

        points: List[IndexPoint] = []
        for start in range(0, len(chunks), self.batch_size):
            batch = chunks[start : start + self.batch_size]
            vectors = await self.embedding_service.embed_batch([c.content for c in batch])
            points.extend(self._to_point(chunk, vector) for chunk, vector in zip(batch, vectors))
            logger.debug(
                f"Embedded {document.source}: {min(start + self.batch_size, len(chunks))}/{len(chunks)} chunks"
            )

        written = 0
        for start in range(0, len(points), self.batch_size):
            written += await self.vector_index.upsert(self.collection_name, points[start : start + self.batch_size])
        return written

    @staticmethod
    def _to_point(chunk: Chunk, vector: List[float]) -> IndexPoint:
        return IndexPoint(id=str(uuid.uuid4()), vector=vector, content=chunk.content, metadata=chunk.metadata)


def create_ingestion_service(settings: Optional[Settings] = None) -> IngestionService:
    """
    Wire the default components for an ingestion run.

    Raises:
        ConfigurationError: If a provider API key or the documentation root is missing
    """
    settings = settings or get_settings()
    settings.validate_runtime()
    setup_logging(settings)

    return IngestionService(
        settings=settings,
        loader=DocumentLoader(settings.ingestion.docs_path, settings.ingestion.file_types),
        chunker=Chunker(settings.chunking.size, settings.chunking.overlap),
        embedding_service=EmbeddingService(settings),
        vector_index=QdrantService(settings),
    )
