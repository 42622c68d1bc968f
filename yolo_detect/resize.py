"""
Resize policies for the model input.

A policy resizes the image for the network *and* returns the transform that
maps boxes from network space back to the original image. Keeping both in
one object means a change of resize strategy always changes the rescaling
with it.
"""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class BoxTransform:
    """
    Maps xyxy boxes from model input space to original image pixels:
    ``x_orig = (x - pad_w) * scale_w`` and likewise for y, where the scale
    is original size over model input size.
    """

    scale: Tuple[float, float] = (1.0, 1.0)
    pad: Tuple[float, float] = (0.0, 0.0)

    def to_original(self, boxes: np.ndarray) -> np.ndarray:
        dw, dh = self.pad
        sw, sh = self.scale
        out = np.array(boxes, dtype=np.float64, copy=True).reshape(-1, 4)
        out[:, [0, 2]] = (out[:, [0, 2]] - dw) * sw
        out[:, [1, 3]] = (out[:, [1, 3]] - dh) * sh
        return out


class ResizePolicy:
    name = "base"

    def apply(self, image: np.ndarray, new_shape: Tuple[int, int]) -> Tuple[np.ndarray, BoxTransform]:
        raise NotImplementedError

    def transform_for(self, orig_size: Tuple[int, int], new_shape: Tuple[int, int]) -> BoxTransform:
        raise NotImplementedError


@dataclass(frozen=True)
class StretchResize(ResizePolicy):
    """
    Fill the model input without preserving aspect ratio.

    x and y are scaled independently, so decoded boxes are multiplied by
    ``orig_w / W`` and ``orig_h / H`` respectively.
    """

    interpolation: int = cv2.INTER_LINEAR
    name = "stretch"

    def transform_for(self, orig_size: Tuple[int, int], new_shape: Tuple[int, int]) -> BoxTransform:
        orig_w, orig_h = orig_size
        new_w, new_h = new_shape
        return BoxTransform(scale=(orig_w / new_w, orig_h / new_h), pad=(0.0, 0.0))

    def apply(self, image: np.ndarray, new_shape: Tuple[int, int]) -> Tuple[np.ndarray, BoxTransform]:
        h, w = image.shape[:2]
        new_w, new_h = new_shape
        if (w, h) != (new_w, new_h):
            image = cv2.resize(image, (new_w, new_h), interpolation=self.interpolation)
        return image, self.transform_for((w, h), new_shape)


@dataclass(frozen=True)
class LetterboxResize(ResizePolicy):
    """
    Aspect-preserving resize padded with a constant colour, matching common YOLO exports.
    """

    color: Tuple[int, int, int] = (114, 114, 114)
    scaleup: bool = True
    name = "letterbox"

    def _geometry(self, orig_size: Tuple[int, int], new_shape: Tuple[int, int]):
        w, h = orig_size
        new_w, new_h = new_shape

        # Scale ratio (new / old)
        r = min(new_w / w, new_h / h)
        if not self.scaleup:  # only scale down
            r = min(r, 1.0)

        # Extreme aspect ratios must not round a side down to zero.
        resized_w, resized_h = max(1, int(round(w * r))), max(1, int(round(h * r)))
        dw, dh = (new_w - resized_w) / 2, (new_h - resized_h) / 2
        return r, (resized_w, resized_h), (dw, dh)

    def transform_for(self, orig_size: Tuple[int, int], new_shape: Tuple[int, int]) -> BoxTransform:
        r, _, pad = self._geometry(orig_size, new_shape)
        return BoxTransform(scale=(1 / r, 1 / r), pad=pad)

    def apply(self, image: np.ndarray, new_shape: Tuple[int, int]) -> Tuple[np.ndarray, BoxTransform]:
        h, w = image.shape[:2]
        r, (resized_w, resized_h), (dw, dh) = self._geometry((w, h), new_shape)

        if (w, h) != (resized_w, resized_h):
            image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

        top, bottom = int(round(dh - 0.1)), int(round(dh + 0.1))
        left, right = int(round(dw - 0.1)), int(round(dw + 0.1))
        padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=self.color)

        return padded, BoxTransform(scale=(1 / r, 1 / r), pad=(dw, dh))


RESIZE_POLICIES = {
    StretchResize.name: StretchResize,
    LetterboxResize.name: LetterboxResize,
}


def resize_policy_from_name(name: str) -> ResizePolicy:
    try:
        return RESIZE_POLICIES[name.lower()]()
    except KeyError:
        raise ValueError(f"Unknown resize policy {name!r}. Expected one of {sorted(RESIZE_POLICIES)}") from None
