"""Classification module for semantic file categorization."""

from .context_builder import ContextBuilder
from .matcher import CategoryMatcher, MatchResult, similarity_to_confidence
from .naming import CustomFolder, match_custom_folder, suggest_file_name
from .prototypes import CategoryPrototype, PrototypeCache
from .semantic_classifier import FileClassification, LocalSemanticClassifier

__all__ = [
    "ContextBuilder",
    "CategoryMatcher",
    "MatchResult",
    "similarity_to_confidence",
    "CustomFolder",
    "match_custom_folder",
    "suggest_file_name",
    "CategoryPrototype",
    "PrototypeCache",
    "FileClassification",
    "LocalSemanticClassifier",
]
