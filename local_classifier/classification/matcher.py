"""
Category Matcher
================

Ranks a query embedding against category prototypes of the requested
content type by cosine similarity.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from local_classifier.classification.prototypes import CategoryPrototype
from local_classifier.config.categories import CategoryDefinition
from local_classifier.embedding.pooling import cosine_similarity
from local_classifier.utils.exceptions import EmptyCategorySetError


def similarity_to_confidence(similarity: float) -> float:
    """Map a cosine similarity in [-1, 1] onto a confidence in [0, 1]."""
    return min(1.0, max(0.0, (similarity + 1.0) / 2.0))


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one embedding against the prototypes.

    Attributes:
        category_name: Name of the winning category.
        confidence: Similarity rescaled to [0, 1].
        similarity: Raw cosine similarity.
        definition: The winning category definition.
    """
    category_name: str
    confidence: float
    similarity: float
    definition: CategoryDefinition

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "category": self.category_name,
            "confidence": self.confidence,
            "similarity": self.similarity,
            "is_image_category": self.definition.is_image_category,
        }


class CategoryMatcher:
    """Cosine-similarity matcher with image/document filtering."""

    @staticmethod
    def _candidates(prototypes: Iterable[CategoryPrototype], want_image: bool) -> List[CategoryPrototype]:
        candidates = [p for p in prototypes if p.is_image_category == want_image]
        if not candidates:
            kind = "image" if want_image else "document"
            raise EmptyCategorySetError(
                f"No {kind} categories available",
                want_image=want_image,
            )
        return candidates

    @staticmethod
    def _result(prototype: CategoryPrototype, similarity: float) -> MatchResult:
        return MatchResult(
            category_name=prototype.name,
            confidence=similarity_to_confidence(similarity),
            similarity=similarity,
            definition=prototype.definition,
        )

    def classify(
        self,
        query: np.ndarray,
        prototypes: Iterable[CategoryPrototype],
        want_image: bool,
    ) -> MatchResult:
        """Pick the most similar prototype of the requested type.

        Ties keep the prototype seen first, so the outcome follows the
        configured category order.

        Raises:
            EmptyCategorySetError: If no prototype has the requested type.
        """
        best: Optional[CategoryPrototype] = None
        best_score = float("-inf")
        for prototype in self._candidates(prototypes, want_image):
            score = cosine_similarity(query, prototype.embedding)
            if score > best_score:
                best, best_score = prototype, score

        return self._result(best, best_score)

    def rank(
        self,
        query: np.ndarray,
        prototypes: Iterable[CategoryPrototype],
        want_image: bool,
        top_k: Optional[int] = None,
    ) -> List[MatchResult]:
        """All candidates of the requested type, most similar first.

        The sort is stable, so equal scores keep configuration order and
        ``rank(...)[0]`` agrees with ``classify``.

        Raises:
            EmptyCategorySetError: If no prototype has the requested type.
        """
        scored = [
            self._result(p, cosine_similarity(query, p.embedding))
            for p in self._candidates(prototypes, want_image)
        ]
        scored.sort(key=lambda r: r.similarity, reverse=True)
        return scored[:top_k] if top_k is not None else scored
