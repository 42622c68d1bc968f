from __future__ import annotations

from typing import Iterable, Optional, Tuple

import cv2
import numpy as np

from .types import Detection


def _color_for_class_id(class_id: Optional[int]) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class id (OpenCV expects BGR).
    """

    if class_id is None:
        return (0, 255, 255)
    rng = np.random.default_rng(int(class_id))
    bgr = rng.integers(64, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
) -> np.ndarray:
    """
    Draw boxes and ``label score`` captions on a copy of an OpenCV BGR image.
    """

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = (int(np.clip(round(v), 0, limit - 1)) for v, limit in zip(det.as_xyxy(), (w, h, w, h)))
        color = _color_for_class_id(det.class_id)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        caption = f"{det.label} {det.confidence:.2f}" if show_score else det.label
        (tw, th), baseline = cv2.getTextSize(caption, cv2.FONT_HERSHEY_SIMPLEX, font_scale, 1)
        # Above the box if it fits, else inside.
        top = y1 - th - baseline if y1 - th - baseline >= 0 else y1
        cv2.rectangle(out, (x1, top), (min(x1 + tw, w - 1), min(top + th + baseline, h - 1)), color, thickness=-1)
        cv2.putText(
            out,
            caption,
            (x1, min(top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=1,
            lineType=cv2.LINE_AA,
        )

    return out
