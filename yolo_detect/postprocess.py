from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from .config import ModelProfile
from .errors import ShapeMismatchError
from .resize import BoxTransform, StretchResize
from .types import Detection


@dataclass(frozen=True)
class DecoderConfig:
    confidence_threshold: float = 0.5
    # Clamp boxes to the original image; off keeps raw decoded geometry.
    clip_boxes: bool = False


class DetectionDecoder:
    """
    Decode the raw YOLOv8-style output of one image into detections.

    Layout (flattened row-major): ``(4 + C, A)``, e.g. 84 x 8400 for COCO.
    Rows 0..3 are cx, cy, w, h in model input pixels, rows 4.. are per-class
    scores. There is no objectness row.
    """

    def __init__(self, profile: Optional[ModelProfile] = None, cfg: DecoderConfig = DecoderConfig()):
        self.profile = profile or ModelProfile()
        self.cfg = cfg

    def decode(
        self,
        raw: np.ndarray,
        orig_width: int,
        orig_height: int,
        transform: Optional[BoxTransform] = None,
    ) -> List[Detection]:
        """
        Convert the raw output into detections in original image coordinates.

        Args:
            raw: model output for a single image, any shape with the expected size
            orig_width, orig_height: size of the image before resizing
            transform: inverse of the resize applied before inference; defaults
                to the stretch resize for ``orig_width`` x ``orig_height``

        Detections come back in candidate order, not deduplicated.
        """

        boxes_cxcywh, scores, class_ids = self._select_classes(raw)

        # Filter by score
        keep = scores >= self.cfg.confidence_threshold
        if not np.any(keep):
            return []
        boxes_cxcywh, scores, class_ids = boxes_cxcywh[keep], scores[keep], class_ids[keep]

        if transform is None:
            transform = StretchResize().transform_for((orig_width, orig_height), self.profile.input_size)
        boxes_xyxy = transform.to_original(self._to_corners(boxes_cxcywh))
        if self.cfg.clip_boxes:
            boxes_xyxy = self._clip(boxes_xyxy, orig_width, orig_height)

        names = self.profile.class_names
        return [
            Detection(
                x1=float(x1),
                y1=float(y1),
                x2=float(x2),
                y2=float(y2),
                label=names[int(cls_id)],
                confidence=float(score),
                class_id=int(cls_id),
            )
            for (x1, y1, x2, y2), score, cls_id in zip(boxes_xyxy, scores, class_ids)
        ]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    def _reshape(self, raw: np.ndarray) -> np.ndarray:
        p = np.asarray(raw, dtype=np.float32)
        expected = self.profile.output_size
        if p.size != expected:
            raise ShapeMismatchError(
                f"Raw output has {p.size} values (shape {p.shape}), expected "
                f"{expected} = ({self.profile.output_rows} x {self.profile.num_candidates})."
            )
        return p.reshape(self.profile.output_rows, self.profile.num_candidates)

    def _select_classes(self, raw: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Returns (A, 4) cxcywh boxes, (A,) best scores and (A,) best class ids.

        argmax picks the first maximum, so ties go to the lowest class index.
        """

        p = self._reshape(raw)
        boxes = p[0:4, :].T
        class_scores = p[4:, :]
        class_ids = np.argmax(class_scores, axis=0)
        scores = class_scores[class_ids, np.arange(class_scores.shape[1])]
        return boxes, scores, class_ids

    @staticmethod
    def _to_corners(boxes: np.ndarray) -> np.ndarray:
        cx, cy, w_box, h_box = boxes.astype(np.float64).T
        x1 = cx - w_box / 2
        y1 = cy - h_box / 2
        x2 = cx + w_box / 2
        y2 = cy + h_box / 2
        return np.stack([x1, y1, x2, y2], axis=1)

    @staticmethod
    def _clip(boxes: np.ndarray, orig_w: int, orig_h: int) -> np.ndarray:
        boxes[:, [0, 2]] = np.clip(boxes[:, [0, 2]], 0, orig_w)
        boxes[:, [1, 3]] = np.clip(boxes[:, [1, 3]], 0, orig_h)
        return boxes
