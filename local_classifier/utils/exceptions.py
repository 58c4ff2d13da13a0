"""
Custom Exceptions
=================

Defines custom exception classes for the local semantic classifier.
All exceptions include error codes for programmatic handling, and
classification errors record which pipeline stage failed so callers can
choose between an extension-based fallback and a user-visible message.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    FILE_NOT_FOUND = 1002

    # Classification errors (1200-1299)
    CLASSIFICATION_FAILED = 1200
    MODEL_UNAVAILABLE = 1201
    EMPTY_CATEGORY_SET = 1202
    INFERENCE_FAILED = 1203


class LocalClassifierError(Exception):
    """Base exception for all local classifier errors.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code.
        details: Additional error context.
        cause: Original exception that caused this error.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
        details: Optional[dict] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Programmatic error code.
            details: Additional context as key-value pairs.
            cause: Original exception if wrapping another error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return a formatted error string."""
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            result += f" | Details: {self.details}"
        if self.cause:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(LocalClassifierError):
    """Raised when there's a configuration problem.

    Examples:
        - Invalid configuration file format
        - Category record missing a name or description
        - Duplicate category names within one content type
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if config_key:
            details["config_key"] = config_key
        if expected_type:
            details["expected_type"] = expected_type
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details,
            **kwargs
        )


class ClassificationError(LocalClassifierError):
    """Raised when a classification call cannot produce a result.

    The ``stage`` names the pipeline step that failed (``vocabulary``,
    ``model``, ``inference``, ``matching``...).
    """

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        file_path: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.CLASSIFICATION_FAILED,
        **kwargs
    ):
        details = kwargs.pop("details", None) or {}
        if stage:
            details["stage"] = stage
        if file_path:
            details["file_path"] = file_path
        super().__init__(
            message,
            error_code=error_code,
            details=details,
            **kwargs
        )
        self.stage = stage


class ModelUnavailableError(ClassificationError):
    """Raised when the inference engine or vocabulary cannot be loaded.

    Not retried; callers fall back to non-AI categorization.
    """

    def __init__(self, message: str, stage: str = "model", **kwargs):
        super().__init__(
            message,
            stage=stage,
            error_code=ErrorCode.MODEL_UNAVAILABLE,
            **kwargs
        )


class EmptyCategorySetError(ClassificationError):
    """Raised when no category prototypes match the requested content type."""

    def __init__(self, message: str, want_image: Optional[bool] = None, **kwargs):
        details = kwargs.pop("details", None) or {}
        if want_image is not None:
            details["want_image"] = want_image
        super().__init__(
            message,
            stage="matching",
            error_code=ErrorCode.EMPTY_CATEGORY_SET,
            details=details,
            **kwargs
        )


class InferenceError(ClassificationError):
    """Raised when the engine call fails or returns malformed output."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            stage="inference",
            error_code=ErrorCode.INFERENCE_FAILED,
            **kwargs
        )
