"""Utilities module for the local classifier."""

from .logging_config import setup_logging, get_logger, LoggingConfig
from .exceptions import (
    LocalClassifierError,
    ConfigurationError,
    ClassificationError,
    ModelUnavailableError,
    EmptyCategorySetError,
    InferenceError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LocalClassifierError",
    "ConfigurationError",
    "ClassificationError",
    "ModelUnavailableError",
    "EmptyCategorySetError",
    "InferenceError",
]
