"""Prompt construction from retrieved passages and conversation history."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from doc_assistant.config import Settings
from doc_assistant.models.conversation import ConversationTurn
from doc_assistant.models.vector import ScoredResult
from doc_assistant.utils.logging import get_logger

logger = get_logger("context_assembler")

BLOCK_SEPARATOR = "\n\n---\n\n"


@dataclass
class AssembledPrompt:
    """Chat messages ready for the model, and the passages they include."""

    messages: List[Dict[str, str]] = field(default_factory=list)
    included: List[ScoredResult] = field(default_factory=list)

    @property
    def has_context(self) -> bool:
        return bool(self.included)


class ContextAssembler:
    """
    Turn ranked search results into a bounded prompt.

    The context section is a numbered list of passage blocks in rank order.
    When the joined blocks exceed MAX_CONTEXT_LENGTH characters, whole blocks
    are dropped from the lowest-ranked end; a block is never truncated.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.max_context_length = settings.retrieval.max_context_length
        self.max_history_messages = settings.retrieval.max_history_messages

    def build_system_prompt(self) -> str:
        """Return the configured persona, or the built-in one for the product."""
        if self.settings.prompt.system_prompt.strip():
            return self.settings.prompt.system_prompt.strip()

        product = self.settings.prompt.product_name
        return f"""You are the assistant for the {product} system, helping users understand and use {product}.

Your responsibilities:
1. Answer questions about {product} accurately, based on the documentation provided
2. Give clear, structured answers, including concrete steps for procedures
3. If a question falls outside the documentation, say so honestly
4. Keep a friendly, professional tone

Answering rules:
- Prefer information from the documentation
- List procedures step by step
- Cite the documentation sources you used
- State clearly when you are unsure

Never invent features or information that the documentation does not describe. If the
documentation has nothing relevant, suggest consulting the official documentation or
contacting support. Keep answers concise and accurate."""

    @staticmethod
    def format_block(index: int, result: ScoredResult) -> str:
        """Format one passage as ``[Document i] (source: ..., relevance: 0.00)``."""
        return f"[Document {index}] (source: {result.source}, relevance: {result.score:.2f})\n{result.content}"

    def select_blocks(self, results: Sequence[ScoredResult]) -> List[ScoredResult]:
        """Keep the longest rank-order prefix whose joined blocks fit the budget."""
        included: List[ScoredResult] = []
        length = 0
        for index, result in enumerate(results, start=1):
            block_length = len(self.format_block(index, result))
            added = block_length + (len(BLOCK_SEPARATOR) if included else 0)
            if length + added > self.max_context_length:
                break
            included.append(result)
            length += added

        if len(included) < len(results):
            logger.debug(
                f"Context budget {self.max_context_length} reached: "
                f"kept {len(included)} of {len(results)} passages"
            )
        return included

    def build_context(self, results: Sequence[ScoredResult]) -> str:
        return BLOCK_SEPARATOR.join(self.format_block(i, r) for i, r in enumerate(results, start=1))

    @staticmethod
    def build_user_message(context: str, query: str) -> str:
        return f"""Answer the user's question based on the following documentation.

Relevant documentation:
{context}

User question:
{query}

Answer using the documentation above. If it contains no relevant information, tell the user so clearly."""

    def assemble(
        self,
        results: Sequence[ScoredResult],
        query: str,
        history: Optional[Sequence[ConversationTurn]] = None,
    ) -> AssembledPrompt:
        """
        Build the message list for a query.

        Args:
            results: Retrieved passages in rank order
            query: The user's question
            history: Prior turns, oldest first; only the most recent
                MAX_HISTORY_MESSAGES are used

        Returns:
            AssembledPrompt; ``included`` is empty when no passage fits, and
            ``messages`` is empty in that case as well
        """
        included = self.select_blocks(results)
        if not included:
            return AssembledPrompt()

        messages: List[Dict[str, str]] = [{"role": "system", "content": self.build_system_prompt()}]

        if history and self.max_history_messages > 0:
            messages.extend(turn.to_message() for turn in list(history)[-self.max_history_messages :])

        messages.append(
            {"role": "user", "content": self.build_user_message(self.build_context(included), query)}
        )

        logger.debug(
            f"Assembled prompt: {len(messages)} messages, {len(included)} passages, "
            f"history={len(messages) - 2}"
        )
        return AssembledPrompt(messages=messages, included=included)
