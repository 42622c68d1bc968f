"""
Single-image object detection for YOLOv8-style ONNX models.

image bytes -> normalize -> inference -> decode -> greedy NMS -> detections.
Pre/post-processing depends on NumPy and OpenCV only; ONNX Runtime is
imported when a model is loaded.
"""

from .types import Detection
from .errors import DecodeError, DetectionError, InferenceError, ShapeMismatchError, UnsupportedFormatError
from .config import COCO_CLASSES, DetectorConfig, ModelProfile, load_detector_config
from .metadata import load_class_names
from .resize import BoxTransform, LetterboxResize, ResizePolicy, StretchResize
from .preprocess import NormalizedInput, normalize
from .inference import InferenceBackend, infer
from .postprocess import DecoderConfig, DetectionDecoder
from .nms import iou, nms, suppress
from .runtime import ObjectDetector, detect_objects, load_detector, resolve_path
from .formatting import format_detections

__all__ = [
    "Detection",
    "DetectionError",
    "DecodeError",
    "UnsupportedFormatError",
    "InferenceError",
    "ShapeMismatchError",
    "COCO_CLASSES",
    "DetectorConfig",
    "ModelProfile",
    "load_detector_config",
    "load_class_names",
    "BoxTransform",
    "ResizePolicy",
    "StretchResize",
    "LetterboxResize",
    "NormalizedInput",
    "normalize",
    "InferenceBackend",
    "infer",
    "DecoderConfig",
    "DetectionDecoder",
    "iou",
    "nms",
    "suppress",
    "ObjectDetector",
    "detect_objects",
    "load_detector",
    "resolve_path",
    "format_detections",
]
