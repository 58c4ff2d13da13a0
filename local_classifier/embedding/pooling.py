"""
Embedding Generator
===================

Attention-masked mean pooling and L2 normalisation of encoder hidden
states into a single sentence vector, plus the cosine similarity used to
compare such vectors.
"""

import numpy as np

from local_classifier.embedding.engine import validate_hidden_states
from local_classifier.embedding.tokenizer import TokenizedInput


def mean_pool(hidden_states: np.ndarray, attention_mask) -> np.ndarray:
    """Average the hidden vectors of attended positions.

    Args:
        hidden_states: Array of shape ``[1, L, H]``.
        attention_mask: Sequence of L zeros and ones.

    Returns:
        Vector of length H; all zeros when nothing is attended.
    """
    tokens = hidden_states[0]
    mask = np.asarray(attention_mask, dtype=bool)
    count = int(mask.sum())
    if count == 0:
        return np.zeros(tokens.shape[-1], dtype=np.float32)
    # Accumulate in float64 so long sequences do not lose precision
    return (tokens[mask].astype(np.float64).sum(axis=0) / count).astype(np.float32)


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    """Scale ``vector`` to unit length; a zero vector is returned unchanged."""
    vector = np.asarray(vector, dtype=np.float32)
    norm = float(np.linalg.norm(vector.astype(np.float64)))
    if norm == 0.0:
        return vector.copy()
    return (vector / norm).astype(np.float32)


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """Cosine of the angle between ``a`` and ``b``.

    Returns 0.0 when either vector has zero norm or the lengths differ.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        return 0.0

    denominator = float(np.linalg.norm(a)) * float(np.linalg.norm(b))
    if denominator == 0.0:
        return 0.0
    similarity = float(np.dot(a, b)) / denominator
    return max(-1.0, min(1.0, similarity))


class EmbeddingGenerator:
    """Turns encoder output into a unit sentence embedding."""

    def embed(self, tokenized: TokenizedInput, hidden_states) -> np.ndarray:
        """Pool and normalise hidden states.

        Args:
            tokenized: The input the hidden states were produced from.
            hidden_states: Engine output of shape ``[1, L, H]``.

        Returns:
            float32 vector of length H with norm 1, or the zero vector when
            no position is attended.

        Raises:
            InferenceError: If ``hidden_states`` is malformed.
        """
        hidden_states = validate_hidden_states(hidden_states, len(tokenized))
        pooled = mean_pool(hidden_states, tokenized.attention_mask)
        return l2_normalize(pooled)
