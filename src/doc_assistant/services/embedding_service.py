"""Embedding generation service (OpenAI-compatible providers)."""

from __future__ import annotations

from typing import List, Optional

from openai import APIConnectionError, APIError, APITimeoutError, AsyncOpenAI

from doc_assistant.config import Settings
from doc_assistant.models.vector import Vector
from doc_assistant.utils.errors import DimensionMismatchError, EmbeddingError, ServiceConnectionError
from doc_assistant.utils.logging import get_logger

logger = get_logger("embedding_service")


class EmbeddingService:
    """
    Convert text into fixed-dimension vectors via an external provider.

    Every call is a network round-trip; nothing is cached and nothing is
    retried here. Callers decide whether and how to retry.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        self.settings = settings
        self._model_name = settings.embedding.model
        self._dimension = settings.embedding.dimension
        self._client = client  # lazy

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> AsyncOpenAI:
        """Create the OpenAI-compatible client."""
        if self._client is not None:
            return self._client

        if not self.settings.embedding.api_key:
            raise EmbeddingError(
                "EMBEDDING_API_KEY (or LLM_API_KEY) is required for embeddings",
                model=self._model_name,
            )
        self._client = AsyncOpenAI(
            api_key=self.settings.embedding.api_key,
            base_url=self.settings.embedding.api_base,
            timeout=self.settings.embedding.timeout,
            max_retries=0,
        )
        return self._client

    async def _embed_request(self, inputs: List[str]) -> List[Vector]:
        """Embed one provider-sized batch of texts."""
        client = self._get_client()
        try:
            resp = await client.embeddings.create(model=self._model_name, input=inputs)
        except APITimeoutError as e:
            raise EmbeddingError(f"Embedding request timed out: {e}", model=self._model_name) from e
        except APIConnectionError as e:
            raise ServiceConnectionError(
                "embedding",
                message=f"Embedding provider unreachable: {e}",
                details={"base_url": self.settings.embedding.api_base},
            ) from e
        except APIError as e:
            raise EmbeddingError(f"Embedding request failed: {e}", model=self._model_name) from e

        try:
            data = sorted(resp.data, key=lambda d: d.index)
            vectors = [[float(x) for x in d.embedding] for d in data]
        except (AttributeError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e}", model=self._model_name) from e

        if len(vectors) != len(inputs):
            raise EmbeddingError(
                "Embedding response size mismatch",
                model=self._model_name,
                details={"expected": len(inputs), "got": len(vectors)},
            )
        for vector in vectors:
            if len(vector) != self._dimension:
                raise DimensionMismatchError(expected=self._dimension, actual=len(vector))
        return vectors

    async def embed(self, text: str) -> Vector:
        """
        Embed a single text.

        Raises:
            EmbeddingError: If the provider rejects the request or responds malformed
            ServiceConnectionError: If the provider is unreachable
            DimensionMismatchError: If the vector length differs from EMBEDDING_DIMENSION
        """
        vectors = await self._embed_request([text])
        return vectors[0]

    async def embed_batch(self, texts: List[str]) -> List[Vector]:
        """
        Embed texts, preserving order (output ``i`` is the vector of ``texts[i]``).

        Texts are sent in sequential sub-batches of ``EMBEDDING_BATCH_SIZE``.
        """
        if not texts:
            return []

        batch_size = max(1, self.settings.embedding.batch_size)
        logger.debug(
            f"Generating embeddings: model={self._model_name}, texts={len(texts)}, batch_size={batch_size}"
        )

        out: List[Vector] = []
        for start in range(0, len(texts), batch_size):
            out.extend(await self._embed_request(texts[start : start + batch_size]))
        return out
