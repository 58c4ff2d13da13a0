"""
Vocabulary Store
================

Loads the token -> id table used by the WordPiece tokenizer. The vocabulary
file is newline-delimited; the 0-based line number of a token is its id.
"""

from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional

from local_classifier.utils.exceptions import ModelUnavailableError
from local_classifier.utils.logging_config import get_logger

logger = get_logger(__name__)

PAD_TOKEN = "[PAD]"
UNK_TOKEN = "[UNK]"
CLS_TOKEN = "[CLS]"
SEP_TOKEN = "[SEP]"

# Reserved ids of BERT-style vocabularies
RESERVED_IDS = {
    PAD_TOKEN: 0,
    UNK_TOKEN: 100,
    CLS_TOKEN: 101,
    SEP_TOKEN: 102,
}


class Vocabulary:
    """Read-only token to id table.

    Safe to share between threads: the table is never mutated after
    construction.
    """

    def __init__(self, token_to_id: Mapping[str, int], source: Optional[str] = None):
        """Initialize from an explicit mapping.

        Args:
            token_to_id: Token string to non-negative id.
            source: Where the table came from, for error messages.

        Raises:
            ModelUnavailableError: If a reserved token is missing or an id
                is negative.
        """
        table = dict(token_to_id)
        for token, token_id in table.items():
            if not isinstance(token_id, int) or token_id < 0:
                raise ModelUnavailableError(
                    f"Vocabulary id for {token!r} must be a non-negative integer",
                    stage="vocabulary",
                    details={"source": source} if source else None,
                )
        for token, expected_id in RESERVED_IDS.items():
            if table.get(token) != expected_id:
                raise ModelUnavailableError(
                    f"Vocabulary must map {token} to id {expected_id}",
                    stage="vocabulary",
                    details={"source": source, "found": table.get(token)},
                )

        self._table = MappingProxyType(table)
        self.source = source
        # Longest entry bounds the WordPiece match window
        self.max_token_length = max(len(token) for token in table)

    @classmethod
    def from_tokens(cls, tokens: Iterable[str], source: Optional[str] = None) -> "Vocabulary":
        """Build from an ordered token list; position is the id.

        A token listed twice keeps its first id.
        """
        table = {}
        for index, token in enumerate(tokens):
            table.setdefault(token, index)
        return cls(table, source=source)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, int]) -> "Vocabulary":
        return cls(mapping, source="<mapping>")

    @classmethod
    def from_file(cls, vocab_path: Path) -> "Vocabulary":
        """Load a newline-delimited vocabulary file.

        Args:
            vocab_path: Path to ``vocab.txt``.

        Raises:
            ModelUnavailableError: If the file is missing, unreadable or
                lacks the reserved tokens at their reserved lines.
        """
        vocab_path = Path(vocab_path)
        if not vocab_path.is_file():
            raise ModelUnavailableError(
                f"Vocabulary file not found: {vocab_path}",
                stage="vocabulary",
            )

        try:
            with open(vocab_path, 'r', encoding='utf-8') as f:
                tokens = [line.rstrip("\r\n") for line in f]
        except (OSError, UnicodeDecodeError) as e:
            raise ModelUnavailableError(
                f"Could not read vocabulary file: {vocab_path}",
                stage="vocabulary",
                cause=e,
            )

        vocabulary = cls.from_tokens(tokens, source=str(vocab_path))
        logger.info(f"Vocabulary loaded: {len(vocabulary)} tokens")
        return vocabulary

    def lookup(self, token: str) -> Optional[int]:
        """Return the id of ``token``, or None when it is not in the table."""
        return self._table.get(token)

    def __contains__(self, token: object) -> bool:
        return token in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    @property
    def pad_id(self) -> int:
        return self._table[PAD_TOKEN]

    @property
    def unk_id(self) -> int:
        return self._table[UNK_TOKEN]

    @property
    def cls_id(self) -> int:
        return self._table[CLS_TOKEN]

    @property
    def sep_id(self) -> int:
        return self._table[SEP_TOKEN]
