"""Qdrant integration service: the vector index adapter."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar, Union

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import (
    CollectionInfo,
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointStruct,
    VectorParams,
)

from doc_assistant.config import Settings
from doc_assistant.models.vector import CollectionStats, DistanceMetric, IndexPoint, ScoredResult, Vector
from doc_assistant.utils.errors import (
    AssistantException,
    DimensionMismatchError,
    NotFoundError,
    ServiceConnectionError,
    ValidationError,
    VectorIndexError,
)
from doc_assistant.utils.logging import get_logger, log_event

logger = get_logger("qdrant_service")

T = TypeVar("T")

SearchFilter = Union[Mapping[str, Any], Filter]

_DISTANCES: Dict[DistanceMetric, Distance] = {
    DistanceMetric.COSINE: Distance.COSINE,
    DistanceMetric.DOT: Distance.DOT,
    DistanceMetric.EUCLID: Distance.EUCLID,
}


def _vector_size(info: CollectionInfo) -> Optional[int]:
    """Read the default vector size from collection info."""
    vectors = info.config.params.vectors
    if isinstance(vectors, VectorParams):
        return int(vectors.size)
    # Named vectors; only a single unnamed-equivalent config is supported
    if isinstance(vectors, dict) and len(vectors) == 1:
        return int(next(iter(vectors.values())).size)
    return None


def build_filter(conditions: Optional[SearchFilter]) -> Optional[Filter]:
    """Build an exact-match Qdrant filter over chunk metadata fields."""
    if conditions is None or isinstance(conditions, Filter):
        return conditions
    if not conditions:
        return None
    return Filter(
        must=[
            FieldCondition(key=f"metadata.{key}", match=MatchValue(value=value))
            for key, value in conditions.items()
        ]
    )


class QdrantService:
    """
    Store and search chunk vectors in Qdrant collections.

    Strategy:
    - One named collection holds all documentation chunks
    - A collection's dimension and metric are fixed at creation
    - Points carry ``{"content", "metadata"}`` payloads for retrieval
    - Consistency under concurrent access is Qdrant's own; no client-side locking
    """

    def __init__(self, settings: Settings, client: Optional[QdrantClient] = None) -> None:
        self.settings = settings
        # Built up front: worker threads share this one client
        self._client = client if client is not None else QdrantClient(
            location=settings.qdrant.url,
            api_key=settings.qdrant.api_key,
            timeout=settings.qdrant.timeout,
        )
        # Vector size per collection, refreshed when another client recreates one
        self._dimensions: Dict[str, int] = {}

    @property
    def client(self) -> QdrantClient:
        return self._client

    async def _run(self, operation: str, collection_name: str, fn: Callable[[], T]) -> T:
        """Run a blocking client call in a worker thread and translate its failures."""
        try:
            return await asyncio.to_thread(fn)
        except AssistantException:
            raise
        except UnexpectedResponse as e:
            if e.status_code == 404:
                self._dimensions.pop(collection_name, None)
                raise NotFoundError("Collection", collection_name) from e
            raise VectorIndexError(
                f"Qdrant {operation} failed: {e}",
                details={"collection": collection_name, "status_code": e.status_code},
            ) from e
        except ResponseHandlingException as e:
            raise ServiceConnectionError(
                "qdrant",
                message=f"Qdrant unreachable during {operation}: {e}",
                details={"url": self.settings.qdrant.url},
            ) from e
        except ValueError as e:
            # Local mode reports missing collections as ValueError
            if "not found" in str(e).lower():
                self._dimensions.pop(collection_name, None)
                raise NotFoundError("Collection", collection_name) from e
            raise VectorIndexError(
                f"Qdrant {operation} failed: {e}", details={"collection": collection_name}
            ) from e
        except Exception as e:
            raise VectorIndexError(
                f"Qdrant {operation} failed: {e}", details={"collection": collection_name}
            ) from e

    async def ensure_collection(
        self,
        collection_name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> bool:
        """
        Create the collection if absent.

        Returns:
            True if the collection was created, False if it already existed

        Raises:
            DimensionMismatchError: If it exists with a different vector size
        """

        def _ensure() -> bool:
            client = self.client
            if client.collection_exists(collection_name):
                current_size = _vector_size(client.get_collection(collection_name))
                if current_size is not None and current_size != dimension:
                    raise DimensionMismatchError(
                        expected=dimension, actual=current_size, collection=collection_name
                    )
                return False
            client.create_collection(
                collection_name=collection_name,
                vectors_config=VectorParams(size=dimension, distance=_DISTANCES[metric]),
            )
            return True

        created = await self._run("ensure_collection", collection_name, _ensure)
        self._dimensions[collection_name] = dimension
        log_event(
            logger,
            f"Qdrant collection {'created' if created else 'exists'}",
            collection=collection_name,
            dimension=dimension,
            metric=metric.value,
        )
        return created

    async def _collection_dimension(self, collection_name: str) -> Optional[int]:
        if collection_name not in self._dimensions:
            info = await self._run(
                "get_collection", collection_name, lambda: self.client.get_collection(collection_name)
            )
            size = _vector_size(info)
            if size is None:
                return None
            self._dimensions[collection_name] = size
        return self._dimensions[collection_name]

    async def _check_dimension(self, collection_name: str, vectors: List[Vector]) -> None:
        expected = await self._collection_dimension(collection_name)
        if expected is not None and any(len(v) != expected for v in vectors):
            # The cached size is stale if the collection was recreated elsewhere
            self._dimensions.pop(collection_name, None)
            expected = await self._collection_dimension(collection_name)
        if expected is None:
            return
        for vector in vectors:
            if len(vector) != expected:
                raise DimensionMismatchError(expected=expected, actual=len(vector), collection=collection_name)

    async def upsert(self, collection_name: str, points: List[IndexPoint]) -> int:
        """
        Insert or replace points by ID and wait until they are visible.

        Returns:
            Number of points written
        """
        if not points:
            return 0
        await self._check_dimension(collection_name, [p.vector for p in points])

        structs = [PointStruct(id=p.id, vector=p.vector, payload=p.to_payload()) for p in points]
        await self._run(
            "upsert",
            collection_name,
            lambda: self.client.upsert(collection_name=collection_name, points=structs, wait=True),
        )
        log_event(logger, "Qdrant upsert complete", collection=collection_name, points=len(structs))
        return len(structs)

    async def search(
        self,
        collection_name: str,
        vector: Vector,
        k: int,
        filter: Optional[SearchFilter] = None,
        score_threshold: Optional[float] = None,
    ) -> List[ScoredResult]:
        """
        Nearest-neighbour search ordered by descending similarity.

        Args:
            collection_name: Collection to search
            vector: Query vector
            k: Maximum number of results (>= 1)
            filter: Metadata exact-match mapping or a native Qdrant Filter
            score_threshold: Drop results scoring below this value

        Returns:
            Scored results; empty when nothing matches
        """
        if k < 1:
            raise ValidationError("k must be >= 1", errors={"k": k})
        await self._check_dimension(collection_name, [vector])

        query_filter = build_filter(filter)
        response = await self._run(
            "search",
            collection_name,
            lambda: self.client.query_points(
                collection_name=collection_name,
                query=vector,
                limit=k,
                query_filter=query_filter,
                score_threshold=score_threshold,
                with_payload=True,
                with_vectors=False,
            ),
        )

        results = []
        for point in response.points:
            payload = point.payload or {}
            results.append(
                ScoredResult(
                    id=str(point.id),
                    content=str(payload.get("content", "")),
                    score=float(point.score),
                    metadata=dict(payload.get("metadata") or {}),
                )
            )
        results.sort(key=lambda r: r.score, reverse=True)
        return results

    async def stats(self, collection_name: str) -> CollectionStats:
        """Return point count, vector count and status of a collection."""
        info = await self._run(
            "get_collection", collection_name, lambda: self.client.get_collection(collection_name)
        )
        status = info.status.value if hasattr(info.status, "value") else str(info.status)
        vector_count = getattr(info, "vectors_count", None)
        if vector_count is None:
            vector_count = getattr(info, "indexed_vectors_count", None)
        return CollectionStats(
            collection_name=collection_name,
            point_count=info.points_count or 0,
            vector_count=vector_count,
            status=status,
        )

    async def drop(self, collection_name: str) -> None:
        """
        Delete a collection and all of its points.

        Raises:
            NotFoundError: If the collection does not exist
        """

        def _drop() -> None:
            client = self.client
            if not client.collection_exists(collection_name):
                raise NotFoundError("Collection", collection_name)
            client.delete_collection(collection_name)

        await self._run("drop", collection_name, _drop)
        self._dimensions.pop(collection_name, None)
        logger.info(f"Qdrant collection dropped: {collection_name}")

    async def reset(
        self,
        collection_name: str,
        dimension: int,
        metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Drop the collection if present and recreate it empty. Irreversible."""
        try:
            await self.drop(collection_name)
        except NotFoundError:
            logger.debug(f"Reset of absent collection {collection_name}; creating it")
        await self.ensure_collection(collection_name, dimension, metric)
