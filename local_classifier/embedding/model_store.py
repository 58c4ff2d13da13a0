"""
Model Store
===========

Locates the on-disk model and vocabulary, reports their status, and loads
each of them at most once per process. Downloading models is the caller's
job; this store only reads what is already on disk.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from local_classifier.config.settings import ModelConfig
from local_classifier.embedding.engine import InferenceEngine, OnnxInferenceEngine
from local_classifier.embedding.vocabulary import Vocabulary
from local_classifier.utils.logging_config import get_logger

logger = get_logger(__name__)

MODEL_FILE_SUFFIXES = (".onnx", ".txt")


@dataclass(frozen=True)
class ModelStatus:
    """Availability of the local model artifacts.

    Attributes:
        is_ready: Model and vocabulary files are present.
        is_loaded: Both have been loaded into memory.
        total_size: Bytes used by cached model files.
        message: Short human-readable status.
    """
    is_ready: bool
    is_loaded: bool = False
    total_size: int = 0
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "is_ready": self.is_ready,
            "is_loaded": self.is_loaded,
            "total_size": self.total_size,
            "message": self.message,
        }


class ModelStore:
    """Lazily loads the inference engine and vocabulary from disk."""

    def __init__(self, config: Optional[ModelConfig] = None):
        """Initialize model store.

        Args:
            config: Model locations. Uses defaults if None.
        """
        self.config = config or ModelConfig()
        self._lock = threading.Lock()
        self._engine: Optional[InferenceEngine] = None
        self._vocabulary: Optional[Vocabulary] = None

    @property
    def model_path(self) -> Path:
        return self.config.model_path

    @property
    def vocab_path(self) -> Path:
        return self.config.vocab_path

    def are_models_available(self) -> bool:
        """Check the model and vocabulary files both exist."""
        return self.model_path.is_file() and self.vocab_path.is_file()

    def cached_models_size(self) -> int:
        """Total size in bytes of model and vocabulary files in the models directory."""
        models_dir = self.config.models_path
        if not models_dir.is_dir():
            return 0
        return sum(
            path.stat().st_size
            for path in models_dir.iterdir()
            if path.is_file() and path.suffix in MODEL_FILE_SUFFIXES
        )

    def get_status(self) -> ModelStatus:
        """Report model availability without loading anything."""
        if self._engine is not None and self._vocabulary is not None:
            return ModelStatus(True, True, self.cached_models_size(), "Models loaded")
        if self.are_models_available():
            return ModelStatus(True, False, self.cached_models_size(), "Models ready")
        return ModelStatus(False, message="Models not downloaded")

    def get_vocabulary(self) -> Vocabulary:
        """Load the vocabulary on first use.

        Raises:
            ModelUnavailableError: If the vocabulary cannot be loaded.
        """
        if self._vocabulary is not None:
            return self._vocabulary

        with self._lock:
            if self._vocabulary is None:
                self._vocabulary = Vocabulary.from_file(self.vocab_path)
            return self._vocabulary

    def get_engine(self) -> InferenceEngine:
        """Create the ONNX engine on first use.

        Raises:
            ModelUnavailableError: If the model cannot be loaded.
        """
        if self._engine is not None:
            return self._engine

        with self._lock:
            if self._engine is None:
                self._engine = OnnxInferenceEngine(self.model_path, self.config.max_threads)
            return self._engine

    def clear(self) -> None:
        """Drop loaded artifacts so the next call reloads them from disk."""
        with self._lock:
            self._engine = None
            self._vocabulary = None
        logger.info("Model cache cleared")
