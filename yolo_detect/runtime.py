from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from .config import DetectorConfig
from .inference import InferenceBackend, infer
from .nms import suppress
from .postprocess import DecoderConfig, DetectionDecoder
from .preprocess import NormalizedInput, normalize, normalize_array
from .types import Detection


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery, used to resolve relative model paths.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against `root` if provided, else the project root.
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class ObjectDetector:
    """
    Sequential pipeline: normalize -> inference -> decode -> suppress.

    Takes encoded image bytes and returns detections in original image
    coordinates, highest confidence first. Every stage raises instead of
    returning partial results.
    """

    def __init__(self, backend: InferenceBackend, config: DetectorConfig = DetectorConfig()):
        self.backend = backend
        self.config = config
        self.decoder = DetectionDecoder(
            config.profile,
            DecoderConfig(confidence_threshold=config.confidence_threshold, clip_boxes=config.clip_boxes),
        )

    def preprocess(self, image_bytes: bytes) -> NormalizedInput:
        return normalize(image_bytes, self.config.profile, self.config.resize)

    def run(self, prep: NormalizedInput) -> List[Detection]:
        cfg = self.config
        raw = infer(prep.tensor, self.backend, cfg.profile)
        candidates = self.decoder.decode(raw, prep.orig_width, prep.orig_height, prep.transform)
        detections = suppress(
            candidates,
            cfg.iou_threshold,
            class_agnostic=cfg.class_agnostic,
            max_detections=cfg.max_detections,
        )
        logger.debug("%d candidates above %.2f, %d after NMS", len(candidates), cfg.confidence_threshold, len(detections))
        return detections

    def detect_array(self, image_rgb: np.ndarray) -> List[Detection]:
        """Same as calling the detector, for an already decoded RGB (H, W, 3) array."""
        return self.run(normalize_array(image_rgb, self.config.profile, self.config.resize))

    def __call__(self, image_bytes: bytes) -> List[Detection]:
        return self.run(self.preprocess(image_bytes))


def detect_objects(
    image_bytes: bytes,
    backend: InferenceBackend,
    config: DetectorConfig = DetectorConfig(),
) -> List[Detection]:
    """One-shot detection; `backend` is the loaded model handle."""
    return ObjectDetector(backend, config)(image_bytes)


def load_detector(
    model_path: PathLike,
    config: DetectorConfig = DetectorConfig(),
    *,
    root: Optional[PathLike] = "auto",
    providers: Optional[Sequence[str]] = None,
) -> ObjectDetector:
    """
    Create a detector for an ONNX model on disk.

    Typical usage:
        detector = load_detector("model/yolov8m.onnx")
        detections = detector(image_bytes)

    The session is opened with the profile's input/output names.
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    resolved = resolve_path(model_path, root=root)
    if resolved.suffix.lower() != ".onnx":
        raise ValueError(f"Expected an .onnx model, got '{resolved.suffix}'.")

    backend = OnnxRuntimeBackend(
        resolved,
        OnnxRuntimeBackendConfig(
            providers=providers,
            input_name=config.profile.input_name,
            output_name=config.profile.output_name,
        ),
    )
    return ObjectDetector(backend, config)
