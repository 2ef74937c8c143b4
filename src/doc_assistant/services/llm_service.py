"""LLM Service for answer generation using LiteLLM.

A single non-streaming chat completion per call. The model name is in LiteLLM
format (e.g. ``openai/qwen-turbo`` against an OpenAI-compatible endpoint), so
any provider LiteLLM routes to can be configured without code changes.
"""

from typing import Any, Dict, List

from litellm import acompletion
from litellm.exceptions import APIConnectionError, Timeout

from doc_assistant.config import Settings
from doc_assistant.models.answer import GeneratedAnswer
from doc_assistant.utils.errors import LLMError, ServiceConnectionError, ValidationError
from doc_assistant.utils.logging import get_logger

logger = get_logger("llm_service")


class LLMService:
    """Service for generating answers from an assembled message list.

    Nothing is retried here; a failure surfaces to the caller on the first
    attempt.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize LLM service with configuration."""
        self.settings = settings
        self.model = settings.llm.model

    def _completion_params(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "temperature": self.settings.llm.temperature,
            "timeout": self.settings.llm.timeout,
            "max_retries": 0,
        }
        if self.settings.llm.api_key:
            params["api_key"] = self.settings.llm.api_key
        if self.settings.llm.api_base:
            params["api_base"] = self.settings.llm.api_base
        return params

    async def generate(self, messages: List[Dict[str, str]]) -> GeneratedAnswer:
        """Generate an answer.

        Args:
            messages: List of message dictionaries with 'role' and 'content'.

        Returns:
            GeneratedAnswer with the model's text.

        Raises:
            ValidationError: If no messages are given.
            LLMError: If the request times out, is rejected, or the response is empty.
            ServiceConnectionError: If the provider is unreachable.
        """
        if not messages:
            raise ValidationError("At least one message is required", errors={"messages": []})

        logger.debug(f"Calling LLM model: {self.model}, messages={len(messages)}")
        try:
            response = await acompletion(**self._completion_params(messages))
        # Timeout subclasses APIConnectionError in LiteLLM's hierarchy
        except Timeout as e:
            raise LLMError(
                message=f"LLM request timed out: {e}",
                model=self.model,
                details={"timeout": self.settings.llm.timeout},
            ) from e
        except APIConnectionError as e:
            raise ServiceConnectionError(
                "llm",
                message=f"LLM provider unreachable: {e}",
                details={"model": self.model, "api_base": self.settings.llm.api_base},
            ) from e
        except Exception as e:
            logger.error(f"LLM call failed: {e}", exc_info=True)
            raise LLMError(
                message=f"LLM call failed: {str(e)}",
                model=self.model,
                details={"error_type": type(e).__name__},
            ) from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, KeyError, TypeError) as e:
            raise LLMError(message=f"Malformed LLM response: {e}", model=self.model) from e

        if not content or not str(content).strip():
            raise LLMError(message="LLM returned an empty response", model=self.model)

        return GeneratedAnswer(answer=str(content).strip(), model=getattr(response, "model", None) or self.model)
