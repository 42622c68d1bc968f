from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np

from ..errors import InferenceError


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - input_name/output_name: override auto-selected I/O names if needed
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_name: Optional[str] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime session behind a single named input and a single named output.

    Expects an NCHW float32 blob shaped (1, 3, H, W) and returns the selected
    output as a NumPy array. Calls on one backend are serialised, so a backend
    can be shared by threads; create one backend per worker for parallel runs.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        import onnxruntime as ort

        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        providers = list(cfg.providers) if cfg.providers is not None else None
        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as e:
            raise InferenceError(f"Could not load ONNX model {self.model_path}: {e}") from e

        input_names = [i.name for i in self.session.get_inputs()]
        output_names = [o.name for o in self.session.get_outputs()]
        self.input_name = cfg.input_name or input_names[0]
        # If output_name not provided, pick first output.
        self.output_name = cfg.output_name or output_names[0]
        if self.input_name not in input_names:
            raise InferenceError(f"Input name {self.input_name!r} not found. Available: {input_names}")
        if self.output_name not in output_names:
            raise InferenceError(f"Output name {self.output_name!r} not found. Available: {output_names}")

        self._lock = threading.Lock()
        logger.info(
            "Loaded %s (input=%s, output=%s, providers=%s)",
            self.model_path.name,
            self.input_name,
            self.output_name,
            ", ".join(self.providers_in_use),
        )

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        try:
            with self._lock:
                outputs = self.session.run([self.output_name], {self.input_name: blob})
        except Exception as e:
            raise InferenceError(f"ONNX Runtime inference failed: {e}") from e
        return outputs[0]
