"""
WordPiece Tokenizer
===================

Turns raw text into the fixed-length id, attention-mask and segment-id
sequences a BERT-style encoder expects. Unknown words are split greedily
into the longest known prefix and ``##`` continuation pieces; characters
that match nothing become ``[UNK]``.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from local_classifier.embedding.vocabulary import Vocabulary
from local_classifier.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_LENGTH = 128

CONTINUATION_PREFIX = "##"

# Whitespace plus the punctuation that separates coarse words
_WORD_SEPARATORS = re.compile(r"""[\s.,!?;:\-_()\[\]{}"']+""")


@dataclass(frozen=True)
class TokenizedInput:
    """Encoder input for a single sequence.

    Attributes:
        input_ids: Token ids, right-padded with ``[PAD]``.
        attention_mask: 1 for real tokens (including ``[CLS]``/``[SEP]``), 0 for padding.
        token_type_ids: Segment ids; all zero for single-sequence input.
    """
    input_ids: Tuple[int, ...]
    attention_mask: Tuple[int, ...]
    token_type_ids: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.input_ids)

    @property
    def attended_count(self) -> int:
        """Number of real (non-padding) positions."""
        return sum(self.attention_mask)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return the three sequences as int64 arrays of shape ``[1, L]``."""
        return (
            np.asarray(self.input_ids, dtype=np.int64).reshape(1, -1),
            np.asarray(self.attention_mask, dtype=np.int64).reshape(1, -1),
            np.asarray(self.token_type_ids, dtype=np.int64).reshape(1, -1),
        )


def split_words(text: str) -> List[str]:
    """Lowercase ``text`` and split it into coarse words."""
    return [word for word in _WORD_SEPARATORS.split(text.lower()) if word]


class WordPieceTokenizer:
    """Greedy longest-match-first WordPiece tokenizer.

    Stateless apart from the read-only vocabulary, so one instance can be
    shared by concurrent callers.
    """

    def __init__(self, vocabulary: Vocabulary, max_length: int = DEFAULT_MAX_LENGTH):
        """Initialize tokenizer.

        Args:
            vocabulary: Token table with the reserved special tokens.
            max_length: Default sequence length L.
        """
        self._check_length(max_length)
        self.vocabulary = vocabulary
        self.max_length = max_length

    @staticmethod
    def _check_length(max_length: int) -> None:
        if max_length < 2:
            raise ValueError(f"max_length must be at least 2, got {max_length}")

    def tokenize(self, text: str, max_length: Optional[int] = None) -> TokenizedInput:
        """Encode ``text`` into a fixed-length TokenizedInput.

        Never raises on unusual characters; empty text yields
        ``[CLS][SEP]`` followed by padding.

        Args:
            text: Raw text.
            max_length: Sequence length L; defaults to the tokenizer's.

        Returns:
            TokenizedInput with exactly L entries per sequence.
        """
        length = self.max_length if max_length is None else max_length
        self._check_length(length)

        vocab = self.vocabulary
        # Leave one slot for [SEP]
        budget = length - 1
        ids = [vocab.cls_id]

        for word in split_words(text or ""):
            if len(ids) >= budget:
                break
            token_id = vocab.lookup(word)
            if token_id is not None:
                ids.append(token_id)
            else:
                ids.extend(self.wordpiece(word, limit=budget - len(ids)))

        ids.append(vocab.sep_id)

        padding = length - len(ids)
        return TokenizedInput(
            input_ids=tuple(ids) + (vocab.pad_id,) * padding,
            attention_mask=(1,) * len(ids) + (0,) * padding,
            token_type_ids=(0,) * length,
        )

    def wordpiece(self, word: str, limit: Optional[int] = None) -> List[int]:
        """Split one word into WordPiece ids.

        Iterative: the outer loop advances ``start`` by at least one
        character per pass, and the match window never exceeds the longest
        vocabulary entry.

        Args:
            word: Lowercased word.
            limit: Stop after this many pieces.

        Returns:
            List of token ids, ``[UNK]`` for characters nothing matched.
        """
        vocab = self.vocabulary
        window = vocab.max_token_length
        max_pieces = len(word) if limit is None else min(limit, len(word))

        pieces: List[int] = []
        start = 0
        while start < len(word) and len(pieces) < max_pieces:
            end = min(len(word), start + window)
            match = None
            while end > start:
                candidate = word[start:end]
                if start > 0:
                    candidate = CONTINUATION_PREFIX + candidate
                match = vocab.lookup(candidate)
                if match is not None:
                    break
                end -= 1

            if match is None:
                pieces.append(vocab.unk_id)
                start += 1
            else:
                pieces.append(match)
                start = end

        return pieces
