"""
Inference Engine
================

Narrow interface to the encoder that maps token tensors to per-token
hidden states, plus the ONNX Runtime implementation used in production.
Tests substitute a deterministic engine through the same interface.
"""

import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import numpy as np

from local_classifier.embedding.vocabulary import CLS_TOKEN, RESERVED_IDS, SEP_TOKEN
from local_classifier.utils.exceptions import InferenceError, ModelUnavailableError
from local_classifier.utils.logging_config import get_logger

logger = get_logger(__name__)

# Lazy import for the native runtime
ort = None


def _import_onnxruntime():
    """Lazy import onnxruntime."""
    global ort
    if ort is None:
        try:
            import onnxruntime as _ort
            ort = _ort
        except ImportError:
            ort = False
    return ort


def validate_hidden_states(hidden_states, seq_len: int) -> np.ndarray:
    """Check an engine output is a float tensor of shape ``[1, L, H]``.

    Args:
        hidden_states: Raw engine output.
        seq_len: Expected sequence length L.

    Returns:
        The output as a float32 array.

    Raises:
        InferenceError: If the output is malformed.
    """
    try:
        array = np.asarray(hidden_states, dtype=np.float32)
    except (TypeError, ValueError) as e:
        raise InferenceError("Engine output is not numeric", cause=e)

    if array.ndim != 3 or array.shape[0] != 1 or array.shape[1] != seq_len or array.shape[2] == 0:
        raise InferenceError(
            f"Engine output has shape {array.shape}, expected (1, {seq_len}, H)",
            details={"shape": list(array.shape)},
        )
    if not np.all(np.isfinite(array)):
        raise InferenceError("Engine output contains NaN or infinite values")
    return array


class InferenceEngine(ABC):
    """Maps ``[1, L]`` int64 token tensors to ``[1, L, H]`` hidden states."""

    @property
    @abstractmethod
    def hidden_size(self) -> int:
        """Hidden dimension H."""

    @abstractmethod
    def run(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> np.ndarray:
        """Run the encoder.

        Raises:
            InferenceError: If the call fails.
        """


class OnnxInferenceEngine(InferenceEngine):
    """Sentence-transformer encoder executed with ONNX Runtime on CPU.

    The session is created once at construction. ``run`` calls are
    serialised with a lock so one engine can be shared between threads.
    """

    HIDDEN_STATE_OUTPUT = "last_hidden_state"

    def __init__(self, model_path: Path, max_threads: int = 0):
        """Load the model.

        Args:
            model_path: Path to the ``.onnx`` file.
            max_threads: Intra-op thread count; 0 derives it from CPU count.

        Raises:
            ModelUnavailableError: If onnxruntime or the model cannot be loaded.
        """
        self.model_path = Path(model_path)
        self.max_threads = max_threads
        self._lock = threading.Lock()
        self._session = self._create_session()
        self._input_names = {i.name for i in self._session.get_inputs()}
        self._output_name = self._select_output()
        self._hidden_size = self._read_hidden_size()
        logger.info(f"Embedding model loaded from {self.model_path}")

    def _create_session(self):
        runtime = _import_onnxruntime()
        if not runtime:
            raise ModelUnavailableError("onnxruntime is not installed", stage="model")

        if not self.model_path.is_file():
            raise ModelUnavailableError(
                f"Model file not found: {self.model_path}",
                stage="model",
            )

        options = runtime.SessionOptions()
        if self.max_threads > 0:
            options.intra_op_num_threads = self.max_threads
            options.inter_op_num_threads = max(1, self.max_threads // 2)
        else:
            cpu_count = os.cpu_count() or 1
            options.intra_op_num_threads = max(1, cpu_count // 2)
            options.inter_op_num_threads = max(1, cpu_count // 4)
        options.graph_optimization_level = runtime.GraphOptimizationLevel.ORT_ENABLE_ALL

        try:
            return runtime.InferenceSession(
                str(self.model_path),
                sess_options=options,
                providers=["CPUExecutionProvider"],
            )
        except Exception as e:
            raise ModelUnavailableError(
                f"Failed to load model {self.model_path}",
                stage="model",
                cause=e,
            )

    def _select_output(self) -> str:
        outputs = self._session.get_outputs()
        for output in outputs:
            if output.name == self.HIDDEN_STATE_OUTPUT:
                return output.name
        for output in outputs:
            if len(output.shape or []) == 3:
                return output.name
        raise ModelUnavailableError(
            f"Model {self.model_path} has no per-token hidden state output",
            stage="model",
            details={"outputs": [o.name for o in outputs]},
        )

    def _read_hidden_size(self) -> Optional[int]:
        for output in self._session.get_outputs():
            if output.name == self._output_name:
                size = output.shape[-1]
                return size if isinstance(size, int) else None
        return None

    @property
    def hidden_size(self) -> int:
        if self._hidden_size is None:
            # Dynamic dimension: probe with the tokenizer output for empty text
            ids = np.array([[RESERVED_IDS[CLS_TOKEN], RESERVED_IDS[SEP_TOKEN]]], dtype=np.int64)
            hidden_states = self.run(ids, np.ones_like(ids), np.zeros_like(ids))
            self._hidden_size = int(validate_hidden_states(hidden_states, ids.shape[1]).shape[-1])
        return self._hidden_size

    def run(
        self,
        input_ids: np.ndarray,
        attention_mask: np.ndarray,
        token_type_ids: np.ndarray,
    ) -> np.ndarray:
        feeds = {
            "input_ids": input_ids,
            "attention_mask": attention_mask,
            "token_type_ids": token_type_ids,
        }
        feeds = {name: value for name, value in feeds.items() if name in self._input_names}

        try:
            with self._lock:
                (hidden_states,) = self._session.run([self._output_name], feeds)
        except Exception as e:
            raise InferenceError(f"ONNX inference failed: {e}", cause=e)

        return hidden_states
