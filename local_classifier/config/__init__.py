"""Configuration module for the local classifier."""

from .settings import (
    Config,
    ModelConfig,
    ClassifierConfig,
)
from .categories import (
    CategoryDefinition,
    CategoryMapping,
    ContentType,
    DEFAULT_CATEGORIES,
)

__all__ = [
    "Config",
    "ModelConfig",
    "ClassifierConfig",
    "CategoryDefinition",
    "CategoryMapping",
    "ContentType",
    "DEFAULT_CATEGORIES",
]
