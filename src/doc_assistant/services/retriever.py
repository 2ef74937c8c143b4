"""Retrieval service: embed a query and search the vector index."""

from typing import List, Optional

from doc_assistant.config import Settings
from doc_assistant.models.vector import ScoredResult
from doc_assistant.services.embedding_service import EmbeddingService
from doc_assistant.services.qdrant_service import QdrantService, SearchFilter
from doc_assistant.utils.errors import ValidationError
from doc_assistant.utils.logging import get_logger, log_event

logger = get_logger("retriever")


class Retriever:
    """Find the chunks most similar to a natural-language query."""

    def __init__(
        self,
        settings: Settings,
        embedding_service: EmbeddingService,
        vector_index: QdrantService,
    ) -> None:
        self.settings = settings
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.collection_name = settings.qdrant.collection_name

    async def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        filter: Optional[SearchFilter] = None,
    ) -> List[ScoredResult]:
        """
        Retrieve the top-k chunks for a query.

        Args:
            query: Natural-language query (non-empty)
            k: Number of results; defaults to TOP_K_RESULTS
            filter: Optional metadata filter passed to the index

        Returns:
            At most ``k`` results ordered by descending score; empty when the
            collection holds nothing relevant

        Raises:
            ValidationError: If the query is blank or ``k < 1``
        """
        if not query or not query.strip():
            raise ValidationError("Query must not be empty", errors={"query": query})
        if k is None:
            k = self.settings.retrieval.top_k_results
        if k < 1:
            raise ValidationError("k must be >= 1", errors={"k": k})

        vector = await self.embedding_service.embed(query)
        results = await self.vector_index.search(
            self.collection_name,
            vector,
            k,
            filter=filter,
            score_threshold=self.settings.retrieval.score_threshold,
        )

        log_event(
            logger,
            "Passages retrieved",
            collection=self.collection_name,
            k=k,
            found=len(results),
            top_score=results[0].score if results else None,
        )
        return results
