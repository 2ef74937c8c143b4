"""Documentation question-answering agent.

Orchestrates retrieval, prompt assembly and answer generation for a single
question, and optionally carries conversation history between questions.
"""

import asyncio
import logging
from typing import List, Optional

from doc_assistant.config import Settings, get_settings
from doc_assistant.models.answer import QueryAnswer, SourceAttribution
from doc_assistant.models.conversation import ConversationTurn, TurnRole
from doc_assistant.models.vector import CollectionStats, ScoredResult
from doc_assistant.services.context_assembler import ContextAssembler
from doc_assistant.services.conversation_state import ConversationHistory
from doc_assistant.services.embedding_service import EmbeddingService
from doc_assistant.services.llm_service import LLMService
from doc_assistant.services.qdrant_service import QdrantService
from doc_assistant.services.retriever import Retriever
from doc_assistant.utils.errors import AssistantException
from doc_assistant.utils.logging import get_logger, log_error, log_event, set_query_id, setup_logging

logger = get_logger("agent")

PREVIEW_LENGTH = 100


class DocumentationAgent:
    """
    Answer questions about the documentation.

    Query pipeline:
    1. Retrieve the top-k passages
    2. Assemble a bounded prompt (plus recent history when requested)
    3. Generate the answer
    4. Commit the question and answer to history (only on success)

    Failures never escape :meth:`query` except cancellation; they come back
    as a QueryAnswer with ``error`` set.
    """

    def __init__(
        self,
        settings: Settings,
        retriever: Retriever,
        assembler: ContextAssembler,
        llm_service: LLMService,
        vector_index: QdrantService,
        history: Optional[ConversationHistory] = None,
    ) -> None:
        self.settings = settings
        self.retriever = retriever
        self.assembler = assembler
        self.llm_service = llm_service
        self.vector_index = vector_index
        self.history = history if history is not None else ConversationHistory(settings.retrieval.history_capacity)
        self.collection_name = settings.qdrant.collection_name

    async def initialize(self) -> None:
        """Ensure the documentation collection exists."""
        await self.vector_index.ensure_collection(
            self.collection_name,
            self.settings.embedding.dimension,
            self.settings.qdrant.distance,
        )
        log_event(logger, "Agent initialized", collection=self.collection_name, model=self.llm_service.model)

    def _no_information(self, question: str) -> QueryAnswer:
        return QueryAnswer(
            question=question,
            answer=self.settings.prompt.no_context_answer,
            sources=[],
            context_used=False,
        )

    @staticmethod
    def _attributions(results: List[ScoredResult]) -> List[SourceAttribution]:
        return [
            SourceAttribution(
                source=result.source,
                score=result.score,
                preview=result.content[:PREVIEW_LENGTH] + "...",
            )
            for result in results
        ]

    async def query(self, question: str, k: Optional[int] = None, use_history: bool = False) -> QueryAnswer:
        """
        Answer a question from the documentation.

        Args:
            question: The user's question
            k: Number of passages to retrieve; defaults to TOP_K_RESULTS
            use_history: Include recent turns in the prompt and record this exchange

        Returns:
            QueryAnswer; on failure ``error`` holds the message and ``sources`` is empty
        """
        set_query_id()
        log_event(logger, "Query received", collection=self.collection_name, k=k, use_history=use_history)

        try:
            results = await self.retriever.retrieve(question, k=k)
            if not results:
                log_event(logger, "No relevant passages found", collection=self.collection_name)
                return self._no_information(question)

            history = self.history.recent(self.settings.retrieval.max_history_messages) if use_history else None
            prompt = self.assembler.assemble(results, question, history=history)
            if not prompt.has_context:
                log_event(logger, "No passage fits the context budget", retrieved=len(results))
                return self._no_information(question)

            generated = await self.llm_service.generate(prompt.messages)

            if use_history:
                self.history.extend(
                    [
                        ConversationTurn(role=TurnRole.USER, content=question),
                        ConversationTurn(role=TurnRole.ASSISTANT, content=generated.answer),
                    ]
                )

            log_event(
                logger,
                "Query answered",
                collection=self.collection_name,
                retrieved=len(results),
                passages=len(prompt.included),
                model=generated.model,
                history_turns=len(history or []),
            )
            return QueryAnswer(
                question=question,
                answer=generated.answer,
                sources=self._attributions(prompt.included),
                context_used=True,
            )

        except asyncio.CancelledError:
            raise
        except AssistantException as e:
            log_event(logger, f"Query failed: {e.message}", level=logging.ERROR, error_code=e.code)
            return self._failure(question, e.message)
        except Exception as e:
            log_error(e, context={"operation": "query", "collection": self.collection_name, "question": question})
            return self._failure(question, str(e))

    @staticmethod
    def _failure(question: str, message: str) -> QueryAnswer:
        return QueryAnswer(
            question=question,
            answer=f"Sorry, an error occurred while generating the answer: {message}",
            sources=[],
            context_used=False,
            error=message,
        )

    def clear_history(self) -> None:
        self.history.clear()
        logger.info("Conversation history cleared")

    async def get_collection_stats(self) -> CollectionStats:
        return await self.vector_index.stats(self.collection_name)


def create_agent(settings: Optional[Settings] = None) -> DocumentationAgent:
    """
    Wire the default components for a documentation agent.

    Raises:
        ConfigurationError: If a provider API key is missing
    """
    settings = settings or get_settings()
    settings.validate_runtime(require_documents=False)
    setup_logging(settings)

    vector_index = QdrantService(settings)
    embedding_service = EmbeddingService(settings)
    return DocumentationAgent(
        settings=settings,
        retriever=Retriever(settings, embedding_service, vector_index),
        assembler=ContextAssembler(settings),
        llm_service=LLMService(settings),
        vector_index=vector_index,
        history=ConversationHistory(settings.retrieval.history_capacity),
    )
