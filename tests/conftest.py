"""
Shared fixtures: a tiny vocabulary and a deterministic stand-in for the
ONNX encoder.
"""

import threading
from pathlib import Path
from typing import Iterable

import numpy as np
import pytest

from local_classifier.classification.semantic_classifier import LocalSemanticClassifier
from local_classifier.config.categories import CategoryDefinition
from local_classifier.embedding.engine import InferenceEngine
from local_classifier.embedding.tokenizer import WordPieceTokenizer
from local_classifier.embedding.vocabulary import Vocabulary

HIDDEN_SIZE = 384


class OneHotEngine(InferenceEngine):
    """Each position's hidden state is a one-hot vector at ``token_id % H``.

    Position independent, so a pooled embedding is the normalised token
    histogram of the input.
    """

    def __init__(self, hidden_size: int = HIDDEN_SIZE):
        self._hidden_size = hidden_size
        self._lock = threading.Lock()
        self.calls = 0

    @property
    def hidden_size(self) -> int:
        return self._hidden_size

    def run(self, input_ids, attention_mask, token_type_ids):
        with self._lock:
            self.calls += 1
        seq_len = input_ids.shape[1]
        hidden = np.zeros((1, seq_len, self._hidden_size), dtype=np.float32)
        hidden[0, np.arange(seq_len), input_ids[0] % self._hidden_size] = 1.0
        return hidden


def write_vocab_file(path: Path, extra_tokens: Iterable[str] = ()) -> Path:
    """Write a BERT-style vocab file with the reserved tokens at their lines."""
    tokens = [f"[unused{i}]" for i in range(103)]
    tokens[0] = "[PAD]"
    tokens[100] = "[UNK]"
    tokens[101] = "[CLS]"
    tokens[102] = "[SEP]"
    tokens.extend(extra_tokens)
    path.write_text("\n".join(tokens) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def vocabulary():
    """Sparse vocabulary with two real words."""
    return Vocabulary.from_mapping({
        "[PAD]": 0,
        "[UNK]": 100,
        "[CLS]": 101,
        "[SEP]": 102,
        "photo": 500,
        "screenshot": 501,
    })


@pytest.fixture
def tokenizer(vocabulary):
    return WordPieceTokenizer(vocabulary, max_length=128)


@pytest.fixture
def engine():
    return OneHotEngine()


@pytest.fixture
def image_categories():
    return [
        CategoryDefinition("Photos", "photo image picture", True),
        CategoryDefinition("Screenshots", "screenshot capture", True),
    ]


@pytest.fixture
def mixed_categories(image_categories):
    return image_categories + [
        CategoryDefinition("Notes", "notes memo reminder"),
        CategoryDefinition("Reports", "report analysis summary"),
    ]


@pytest.fixture
def classifier(tokenizer, engine, image_categories):
    return LocalSemanticClassifier(tokenizer=tokenizer, engine=engine, categories=image_categories)


@pytest.fixture
def vocab_file(tmp_path):
    return write_vocab_file(tmp_path / "vocab.txt", ["photo", "screenshot", "play", "##ing"])
