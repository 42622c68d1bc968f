from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import numpy as np

from .config import ModelProfile
from .errors import InferenceError


logger = logging.getLogger(__name__)


class InferenceBackend(Protocol):
    """Anything that maps a (1, 3, H, W) float32 blob to the raw model output."""

    def infer(self, blob: np.ndarray) -> np.ndarray:
        ...


def infer(tensor: np.ndarray, backend: InferenceBackend, profile: Optional[ModelProfile] = None) -> np.ndarray:
    """
    Run the model on one normalized tensor and return the flat raw output.

    The tensor must be (3, H, W) for the profile's input size; it is passed
    on as a batch of one. Engine failures surface as InferenceError and are
    not retried.
    """

    profile = profile or ModelProfile()
    w, h = profile.input_size
    tensor = np.asarray(tensor)
    if tensor.size != 3 * w * h or (tensor.ndim == 3 and tensor.shape != (3, h, w)):
        raise InferenceError(f"Expected a tensor of {3 * w * h} values for {w}x{h} input, got shape {tensor.shape}")

    blob = np.ascontiguousarray(tensor, dtype=np.float32).reshape(1, 3, h, w)

    start = time.perf_counter()
    try:
        raw = backend.infer(blob)
    except InferenceError:
        raise
    except Exception as e:
        raise InferenceError(f"Inference failed: {e}") from e
    logger.debug("Inference took %.1f ms", (time.perf_counter() - start) * 1000.0)

    if raw is None:
        raise InferenceError(f"Inference returned no output for {profile.output_name!r}")
    return np.asarray(raw, dtype=np.float32).reshape(-1)
