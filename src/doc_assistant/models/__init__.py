"""Data models for documents, vectors, conversation turns and answers."""

from doc_assistant.models.answer import GeneratedAnswer, IngestionReport, QueryAnswer, SourceAttribution
from doc_assistant.models.conversation import ConversationTurn, TurnRole
from doc_assistant.models.document import Chunk, Document
from doc_assistant.models.vector import CollectionStats, DistanceMetric, IndexPoint, ScoredResult, Vector

__all__ = [
    "Chunk",
    "CollectionStats",
    "ConversationTurn",
    "DistanceMetric",
    "Document",
    "GeneratedAnswer",
    "IndexPoint",
    "IngestionReport",
    "QueryAnswer",
    "ScoredResult",
    "SourceAttribution",
    "TurnRole",
    "Vector",
]
