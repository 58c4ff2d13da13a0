"""Text embedding pipeline: vocabulary, tokenizer, encoder and pooling."""

from .vocabulary import Vocabulary
from .tokenizer import WordPieceTokenizer, TokenizedInput
from .engine import InferenceEngine, OnnxInferenceEngine
from .pooling import EmbeddingGenerator, cosine_similarity, l2_normalize, mean_pool
from .model_store import ModelStore, ModelStatus

__all__ = [
    "Vocabulary",
    "WordPieceTokenizer",
    "TokenizedInput",
    "InferenceEngine",
    "OnnxInferenceEngine",
    "EmbeddingGenerator",
    "cosine_similarity",
    "l2_normalize",
    "mean_pool",
    "ModelStore",
    "ModelStatus",
]
