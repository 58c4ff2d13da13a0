"""
Local Semantic Classifier
=========================

Offline classifier that embeds file context with a local sentence encoder
and picks the closest category prototype. No network access is involved;
the encoder runs from an on-disk model.

Pipeline: context -> tokenizer -> inference engine -> pooling -> matcher.
"""

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from local_classifier.classification.context_builder import ContextBuilder
from local_classifier.classification.matcher import CategoryMatcher, MatchResult
from local_classifier.classification.naming import (
    CustomFolder,
    match_custom_folder,
    suggest_file_name,
)
from local_classifier.classification.prototypes import PrototypeCache
from local_classifier.config.categories import (
    CATEGORY_MAPPING,
    CategoryDefinition,
    ContentType,
)
from local_classifier.config.settings import ClassifierConfig, Config
from local_classifier.embedding.engine import InferenceEngine
from local_classifier.embedding.model_store import ModelStore
from local_classifier.embedding.pooling import EmbeddingGenerator
from local_classifier.embedding.tokenizer import WordPieceTokenizer
from local_classifier.utils.exceptions import (
    ClassificationError,
    EmptyCategorySetError,
    InferenceError,
    ModelUnavailableError,
)
from local_classifier.utils.logging_config import get_logger, Timer

logger = get_logger(__name__)

# Number of runner-up categories kept on file results
ALTERNATIVES = 3


@dataclass
class FileClassification:
    """Result of classifying a file on disk.

    Attributes:
        file_path: Path of the classified file.
        content_type: Whether image or document categories were used.
        match: Winning category.
        context: Text that was embedded.
        suggested_name: Readable name suggestion (without extension).
        matched_folder: User folder matching the category, if any.
        alternatives: Best matches in descending order, winner first.
    """
    file_path: str
    content_type: ContentType
    match: MatchResult
    context: str
    suggested_name: str
    matched_folder: Optional[CustomFolder] = None
    alternatives: List[MatchResult] = field(default_factory=list)

    @property
    def category(self) -> str:
        return self.match.category_name

    @property
    def confidence(self) -> float:
        return self.match.confidence

    @property
    def suggested_folder(self) -> str:
        """Matched user folder, else a new folder under Pictures/ or Documents/."""
        if self.matched_folder is not None:
            return self.matched_folder.path
        root = "Pictures" if self.content_type is ContentType.IMAGE else "Documents"
        return f"{root}/{self.category}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "file_path": self.file_path,
            "content_type": self.content_type.value,
            "category": self.category,
            "confidence": self.confidence,
            "description": f"Local AI: {self.match.definition.description}",
            "suggested_name": self.suggested_name,
            "suggested_folder": self.suggested_folder,
            "matched_folder_id": self.matched_folder.id if self.matched_folder else None,
            "alternatives": [m.to_dict() for m in self.alternatives],
        }


class LocalSemanticClassifier:
    """Embeds text and matches it against cached category prototypes.

    Components can be injected directly (tests pass a fake engine) or
    loaded on first use from a ModelStore. Calls are safe to issue from
    several threads; the only shared state is the prototype cache.
    """

    def __init__(
        self,
        tokenizer: Optional[WordPieceTokenizer] = None,
        engine: Optional[InferenceEngine] = None,
        categories: Optional[Sequence[CategoryDefinition]] = None,
        config: Optional[ClassifierConfig] = None,
        model_store: Optional[ModelStore] = None,
    ):
        """Initialize the classifier.

        Args:
            tokenizer: Tokenizer; loaded from ``model_store`` when None.
            engine: Inference engine; loaded from ``model_store`` when None.
            categories: Category definitions; defaults to ``config.categories``.
            config: Classifier settings. Uses defaults if None.
            model_store: Source for components not passed explicitly.

        Raises:
            ConfigurationError: On duplicate category names.
            ValueError: If a component is missing and no model store is given.
        """
        if (tokenizer is None or engine is None) and model_store is None:
            raise ValueError("tokenizer and engine are required without a model_store")

        self.config = config or ClassifierConfig()
        self.model_store = model_store
        self._tokenizer = tokenizer
        self._engine = engine
        self._load_lock = threading.Lock()

        self.generator = EmbeddingGenerator()
        self.matcher = CategoryMatcher()
        self.context_builder = ContextBuilder(self.config.max_document_chars)
        self.prototypes = PrototypeCache(
            categories if categories is not None else self.config.categories,
            self.embed_text,
            self.config.prototype_template,
        )

    @classmethod
    def from_config(cls, config: Optional[Config] = None) -> "LocalSemanticClassifier":
        """Create a classifier that loads the ONNX model and vocabulary lazily."""
        config = config or Config()
        return cls(config=config.classifier, model_store=ModelStore(config.model))

    def _get_tokenizer(self) -> WordPieceTokenizer:
        if self._tokenizer is None:
            with self._load_lock:
                if self._tokenizer is None:
                    vocabulary = self.model_store.get_vocabulary()
                    self._tokenizer = WordPieceTokenizer(vocabulary, self.config.max_sequence_length)
        return self._tokenizer

    def _get_engine(self) -> InferenceEngine:
        if self._engine is None:
            with self._load_lock:
                if self._engine is None:
                    self._engine = self.model_store.get_engine()
        return self._engine

    def is_available(self) -> bool:
        """Check that the tokenizer and engine can be loaded."""
        try:
            self._get_tokenizer()
            self._get_engine()
            return True
        except ModelUnavailableError as e:
            logger.warning(f"Local classifier unavailable: {e}")
            return False

    def embed_text(self, text: str) -> np.ndarray:
        """Embed ``text`` into a unit vector.

        Raises:
            ModelUnavailableError: If the vocabulary or model cannot be loaded.
            InferenceError: If the engine fails or returns malformed output.
        """
        tokenizer = self._get_tokenizer()
        engine = self._get_engine()

        tokenized = tokenizer.tokenize(text or "", self.config.max_sequence_length)
        input_ids, attention_mask, token_type_ids = tokenized.as_arrays()

        try:
            with Timer(logger, "inference"):
                hidden_states = engine.run(input_ids, attention_mask, token_type_ids)
        except ClassificationError:
            raise
        except Exception as e:
            raise InferenceError(f"Inference engine failed: {e}", cause=e)

        return self.generator.embed(tokenized, hidden_states)

    def _require_categories(self, want_image: bool) -> None:
        if not any(d.is_image_category == want_image for d in self.prototypes.definitions):
            kind = "image" if want_image else "document"
            raise EmptyCategorySetError(f"No {kind} categories configured", want_image=want_image)

    def classify_text(self, text: str, want_image: bool) -> MatchResult:
        """Classify context text against image or document categories.

        Raises:
            EmptyCategorySetError: If no category has the requested type.
            ModelUnavailableError: If the model cannot be loaded.
            InferenceError: If inference fails.
        """
        self._require_categories(want_image)
        prototypes = self.prototypes.get_all_prototypes()
        query = self.embed_text(text)
        return self.matcher.classify(query, prototypes, want_image)

    def rank_text(self, text: str, want_image: bool, top_k: Optional[int] = None) -> List[MatchResult]:
        """Like ``classify_text`` but returns the ``top_k`` best matches."""
        self._require_categories(want_image)
        prototypes = self.prototypes.get_all_prototypes()
        query = self.embed_text(text)
        return self.matcher.rank(query, prototypes, want_image, top_k)

    def _classify_context(
        self,
        file_path: Path,
        context: str,
        content_type: ContentType,
        custom_folders: Optional[Sequence[CustomFolder]],
    ) -> FileClassification:
        logger.debug(f"Classification context: {context!r}", extra={"file_path": str(file_path)})

        try:
            ranked = self.rank_text(context, content_type is ContentType.IMAGE, top_k=ALTERNATIVES)
        except ClassificationError as e:
            e.details.setdefault("file_path", str(file_path))
            raise

        best = ranked[0]
        logger.info(
            f"{content_type.value.capitalize()} classified as {best.category_name} ({best.confidence:.0%})",
            extra={"file_path": str(file_path), "category": best.category_name, "confidence": best.confidence},
        )
        return FileClassification(
            file_path=str(file_path),
            content_type=content_type,
            match=best,
            context=context,
            suggested_name=suggest_file_name(file_path.stem, best.category_name),
            matched_folder=match_custom_folder(best.category_name, custom_folders),
            alternatives=ranked,
        )

    @staticmethod
    def _check_exists(file_path: Path) -> Path:
        file_path = Path(file_path)
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")
        return file_path

    def classify_image(
        self,
        image_path: Path,
        custom_folders: Optional[Sequence[CustomFolder]] = None,
    ) -> FileClassification:
        """Classify an image from its filename and dimensions."""
        image_path = self._check_exists(image_path)
        context = self.context_builder.image_context_for_file(image_path)
        return self._classify_context(image_path, context, ContentType.IMAGE, custom_folders)

    def classify_document(
        self,
        document_path: Path,
        custom_folders: Optional[Sequence[CustomFolder]] = None,
    ) -> FileClassification:
        """Classify a document from its filename and, for text formats, its content."""
        document_path = self._check_exists(document_path)
        context = self.context_builder.document_context_for_file(
            document_path,
            read_content=CATEGORY_MAPPING.is_text(document_path.suffix),
        )
        return self._classify_context(document_path, context, ContentType.DOCUMENT, custom_folders)

    def classify_file(
        self,
        file_path: Path,
        custom_folders: Optional[Sequence[CustomFolder]] = None,
    ) -> FileClassification:
        """Route a file to image or document classification by extension."""
        file_path = Path(file_path)
        if CATEGORY_MAPPING.get_content_type(file_path.suffix) is ContentType.IMAGE:
            return self.classify_image(file_path, custom_folders)
        return self.classify_document(file_path, custom_folders)
