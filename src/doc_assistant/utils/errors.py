"""Custom exception classes for the documentation assistant."""

from typing import Any, Dict, Optional


class AssistantException(Exception):
    """Base exception for all documentation assistant errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for structured results."""
        return {
            "error": {
                "message": self.message,
                "code": self.code,
                "details": self.details,
            }
        }


class ConfigurationError(AssistantException):
    """Exception raised for invalid or missing settings."""

    def __init__(
        self,
        message: str = "Invalid configuration",
        setting: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if setting:
            error_details["setting"] = setting
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details=error_details,
        )


class ServiceConnectionError(AssistantException):
    """Exception raised when the vector index or a provider is unreachable."""

    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_message = message or f"Service '{service}' unreachable"
        error_details = details or {}
        error_details["service"] = service
        super().__init__(
            message=error_message,
            code="CONNECTION_ERROR",
            details=error_details,
        )


class ProviderError(AssistantException):
    """Exception raised when an embedding or LLM provider rejects a request."""

    def __init__(
        self,
        message: str = "Provider request failed",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        code: str = "PROVIDER_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if provider:
            error_details["provider"] = provider
        if model:
            error_details["model"] = model
        super().__init__(message=message, code=code, details=error_details)


class EmbeddingError(ProviderError):
    """Exception raised for embedding generation errors."""

    def __init__(
        self,
        message: str = "Embedding generation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            provider="embedding",
            model=model,
            code="EMBEDDING_ERROR",
            details=details,
        )


class LLMError(ProviderError):
    """Exception raised for LLM-related errors."""

    def __init__(
        self,
        message: str = "LLM operation failed",
        model: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            provider="llm",
            model=model,
            code="LLM_ERROR",
            details=details,
        )


class DimensionMismatchError(AssistantException):
    """Exception raised when a vector disagrees with the configured dimension."""

    def __init__(
        self,
        expected: int,
        actual: int,
        collection: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"Vector dimension mismatch: expected {expected}, got {actual}"
        if collection:
            message += f" (collection: {collection})"
        error_details = details or {}
        error_details.update({"expected_dimension": expected, "actual_dimension": actual})
        if collection:
            error_details["collection"] = collection
        super().__init__(
            message=message,
            code="DIMENSION_MISMATCH",
            details=error_details,
        )


class NotFoundError(AssistantException):
    """Exception raised when an operation targets an absent resource."""

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource} not found"
        if resource_id:
            message += f" with id: {resource_id}"
        error_details = details or {}
        error_details["resource"] = resource
        if resource_id:
            error_details["resource_id"] = resource_id
        super().__init__(
            message=message,
            code="NOT_FOUND",
            details=error_details,
        )


class VectorIndexError(AssistantException):
    """Exception raised for vector index operation errors."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code="VECTOR_INDEX_ERROR",
            details=details,
        )


class ValidationError(AssistantException):
    """Exception raised for invalid arguments."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if errors:
            error_details["validation_errors"] = errors
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=error_details,
        )


class DocumentLoadError(AssistantException):
    """Exception raised when a documentation file cannot be loaded."""

    def __init__(
        self,
        message: str = "Document loading failed",
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        if path:
            error_details["path"] = path
        super().__init__(
            message=message,
            code="DOCUMENT_LOAD_ERROR",
            details=error_details,
        )
