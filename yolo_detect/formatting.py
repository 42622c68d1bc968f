from __future__ import annotations

import json
import math
from typing import Iterable, List

from .types import Detection


NO_OBJECTS = "No objects detected"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_detection(det: Detection) -> str:
    """``label (NN%): [x1, y1, x2, y2]``, halves rounded up."""
    x1, y1, x2, y2 = (_round_half_up(v) for v in det.as_xyxy())
    return f"{det.label} ({_round_half_up(det.confidence * 100)}%): [{x1}, {y1}, {x2}, {y2}]"


def format_detections(detections: Iterable[Detection]) -> str:
    lines: List[str] = [format_detection(det) for det in detections]
    return "\n".join(lines) if lines else NO_OBJECTS


def detections_to_json(detections: Iterable[Detection]) -> str:
    return json.dumps(
        [
            {
                "label": det.label,
                "confidence": round(det.confidence, 4),
                "box": [round(v, 2) for v in det.as_xyxy()],
            }
            for det in detections
        ]
    )
