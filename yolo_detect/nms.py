from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .types import Detection


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.7
    max_detections: Optional[int] = None
    # False runs NMS per class and merges the survivors by confidence.
    class_agnostic: bool = True


def _areas(boxes: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, boxes[:, 2] - boxes[:, 0]) * np.maximum(0.0, boxes[:, 3] - boxes[:, 1])


def _iou_one_to_many(box: np.ndarray, box_area: float, others: np.ndarray, other_areas: np.ndarray) -> np.ndarray:
    xx1 = np.maximum(box[0], others[:, 0])
    yy1 = np.maximum(box[1], others[:, 1])
    xx2 = np.minimum(box[2], others[:, 2])
    yy2 = np.minimum(box[3], others[:, 3])

    # Disjoint boxes give negative extents; clamp before multiplying.
    w = np.maximum(0.0, xx2 - xx1)
    h = np.maximum(0.0, yy2 - yy1)
    inter = w * h
    union = box_area + other_areas - inter
    safe_union = np.where(union > 0.0, union, 1.0)
    return np.where(union > 0.0, inter / safe_union, 0.0)


def iou(box1: Sequence[float], box2: Sequence[float]) -> float:
    """
    Intersection over union of two xyxy boxes, always in [0, 1].

    Boxes with zero (or inverted) extent have zero area, so IoU with them is 0.
    """

    a = np.asarray(box1, dtype=np.float64).reshape(1, 4)
    b = np.asarray(box2, dtype=np.float64).reshape(1, 4)
    return float(_iou_one_to_many(a[0], float(_areas(a)[0]), b, _areas(b))[0])


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).

    Returns indices of kept boxes, highest score first. Equal scores keep their
    input order. A box is dropped when its IoU with a kept box is >= threshold.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    boxes = np.asarray(boxes, dtype=np.float64)
    areas = _areas(boxes)

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    keep: List[int] = []

    while order.size > 0:
        if cfg.max_detections is not None and len(keep) >= cfg.max_detections:
            break
        i = order[0]
        keep.append(int(i))

        rest = order[1:]
        overlap = _iou_one_to_many(boxes[i], areas[i], boxes[rest], areas[rest])
        order = rest[overlap < cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def nms_per_class(boxes: np.ndarray, scores: np.ndarray, class_ids: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    kept: List[int] = []
    for cls in np.unique(class_ids):
        idx = np.where(class_ids == cls)[0]
        keep_local = nms(boxes[idx], scores[idx], cfg)
        kept.extend(idx[keep_local].tolist())

    if not kept:
        return np.empty((0,), dtype=np.int64)

    kept_arr = np.array(sorted(kept), dtype=np.int64)
    order = np.argsort(-scores[kept_arr], kind="stable")
    kept_arr = kept_arr[order]
    if cfg.max_detections is not None:
        kept_arr = kept_arr[: cfg.max_detections]
    return kept_arr


def _to_arrays(detections: Sequence[Detection]) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    boxes = np.array([d.as_xyxy() for d in detections], dtype=np.float64).reshape(-1, 4)
    scores = np.array([d.confidence for d in detections], dtype=np.float64)
    labels = np.array([d.label for d in detections], dtype=object)
    return boxes, scores, labels


def suppress(
    detections: Sequence[Detection],
    iou_threshold: float = 0.7,
    *,
    class_agnostic: bool = True,
    max_detections: Optional[int] = None,
) -> List[Detection]:
    """
    Remove overlapping duplicates from decoded detections.

    By default suppression ignores labels: a box of one class can remove an
    overlapping box of another. The result is a subset of the input sorted by
    descending confidence.
    """

    if not detections:
        return []

    cfg = NMSConfig(iou_threshold=iou_threshold, max_detections=max_detections, class_agnostic=class_agnostic)
    boxes, scores, labels = _to_arrays(detections)

    if cfg.class_agnostic:
        keep = nms(boxes, scores, cfg)
    else:
        _, class_keys = np.unique(labels, return_inverse=True)
        keep = nms_per_class(boxes, scores, class_keys, cfg)

    return [detections[int(i)] for i in keep]
