from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .metadata import load_class_names
from .resize import ResizePolicy, StretchResize, resize_policy_from_name


COCO_CLASSES: Tuple[str, ...] = (
    "person", "bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat",
    "traffic light", "fire hydrant", "stop sign", "parking meter", "bench", "bird", "cat", "dog", "horse",
    "sheep", "cow", "elephant", "bear", "zebra", "giraffe", "backpack", "umbrella", "handbag", "tie", "suitcase",
    "frisbee", "skis", "snowboard", "sports ball", "kite", "baseball bat", "baseball glove", "skateboard",
    "surfboard", "tennis racket", "bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl", "banana", "apple",
    "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake", "chair", "couch", "potted plant",
    "bed", "dining table", "toilet", "tv", "laptop", "mouse", "remote", "keyboard", "cell phone", "microwave", "oven",
    "toaster", "sink", "refrigerator", "book", "clock", "vase", "scissors", "teddy bear", "hair drier", "toothbrush",
)


@dataclass(frozen=True)
class ModelProfile:
    """
    Fixed shapes and names of the loaded model.

    The raw output is expected as ``(4 + len(class_names), num_candidates)``:
    rows cx, cy, w, h in input space, then one score row per class.
    """

    input_size: Tuple[int, int] = (640, 640)  # (width, height)
    num_candidates: int = 8400
    class_names: Tuple[str, ...] = COCO_CLASSES
    input_name: str = "images"
    output_name: str = "output0"

    def __post_init__(self) -> None:
        w, h = self.input_size
        if w <= 0 or h <= 0:
            raise ValueError("input_size must be positive")
        if self.num_candidates <= 0:
            raise ValueError("num_candidates must be > 0")
        if not self.class_names:
            raise ValueError("class_names must not be empty")

    @property
    def num_classes(self) -> int:
        return len(self.class_names)

    @property
    def output_rows(self) -> int:
        return 4 + self.num_classes

    @property
    def output_size(self) -> int:
        return self.output_rows * self.num_candidates


@dataclass(frozen=True)
class DetectorConfig:
    confidence_threshold: float = 0.5
    iou_threshold: float = 0.7
    class_agnostic: bool = True
    max_detections: Optional[int] = None
    clip_boxes: bool = False
    profile: ModelProfile = field(default_factory=ModelProfile)
    resize: ResizePolicy = field(default_factory=StretchResize)

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError("confidence_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections is not None and self.max_detections <= 0:
            raise ValueError("max_detections must be > 0 when set")


def _require_number(payload: Dict[str, Any], key: str, default: float) -> float:
    value = payload.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_bool(payload: Dict[str, Any], key: str, default: bool) -> bool:
    value = payload.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_size(payload: Dict[str, Any], key: str, default: Tuple[int, int]) -> Tuple[int, int]:
    value = payload.get(key, list(default))
    if (
        not isinstance(value, (list, tuple))
        or len(value) != 2
        or any(isinstance(v, bool) or not isinstance(v, int) for v in value)
    ):
        raise ValueError(f"{key} must be [width, height] integers")
    return int(value[0]), int(value[1])


def _require_names(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("class_names must be a list of strings")
    return tuple(value)


def load_detector_config(path: Path) -> DetectorConfig:
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = {
        "schema_version",
        "confidence_threshold",
        "iou_threshold",
        "class_agnostic",
        "max_detections",
        "clip_boxes",
        "input_size",
        "num_candidates",
        "input_name",
        "output_name",
        "class_names",
        "class_names_path",
        "resize",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    if payload.get("schema_version") != 1:
        raise ValueError("detector config schema_version must be 1")

    if "class_names" in payload and "class_names_path" in payload:
        raise ValueError("Use either class_names or class_names_path, not both")
    if "class_names" in payload:
        class_names = _require_names(payload["class_names"])
    elif "class_names_path" in payload:
        names_path = Path(payload["class_names_path"])
        if not names_path.is_absolute():
            names_path = path.parent / names_path
        class_names = load_class_names(str(names_path))
    else:
        class_names = COCO_CLASSES

    defaults = ModelProfile()
    num_candidates = _optional_int(payload, "num_candidates")
    profile = ModelProfile(
        input_size=_require_size(payload, "input_size", defaults.input_size),
        num_candidates=defaults.num_candidates if num_candidates is None else num_candidates,
        class_names=class_names,
        input_name=str(payload.get("input_name", defaults.input_name)),
        output_name=str(payload.get("output_name", defaults.output_name)),
    )

    resize_name = payload.get("resize", StretchResize.name)
    if not isinstance(resize_name, str):
        raise ValueError("resize must be a string")

    return DetectorConfig(
        confidence_threshold=_require_number(payload, "confidence_threshold", 0.5),
        iou_threshold=_require_number(payload, "iou_threshold", 0.7),
        class_agnostic=_require_bool(payload, "class_agnostic", True),
        max_detections=_optional_int(payload, "max_detections"),
        clip_boxes=_require_bool(payload, "clip_boxes", False),
        profile=profile,
        resize=resize_policy_from_name(resize_name),
    )
