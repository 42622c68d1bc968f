from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .config import ModelProfile
from .image_io import decode_image_bytes
from .resize import BoxTransform, ResizePolicy, StretchResize


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedInput:
    tensor: np.ndarray  # (3, H, W) float32 in [0, 1], channel-planar RGB
    orig_size: Tuple[int, int]  # (width, height)
    transform: BoxTransform

    @property
    def orig_width(self) -> int:
        return self.orig_size[0]

    @property
    def orig_height(self) -> int:
        return self.orig_size[1]


def to_planar(image_rgb: np.ndarray) -> np.ndarray:
    """HWC uint8 -> CHW float32 scaled by 1/255."""

    return np.ascontiguousarray(np.transpose(image_rgb, (2, 0, 1)), dtype=np.float32) / 255.0


def normalize_array(
    image_rgb: np.ndarray,
    profile: Optional[ModelProfile] = None,
    policy: Optional[ResizePolicy] = None,
) -> NormalizedInput:
    profile = profile or ModelProfile()
    policy = policy or StretchResize()

    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {image_rgb.shape}")

    orig_h, orig_w = image_rgb.shape[:2]
    resized, transform = policy.apply(image_rgb, profile.input_size)
    tensor = to_planar(resized)

    logger.debug("Normalized %dx%d image to %s with %s resize", orig_w, orig_h, tensor.shape, policy.name)
    return NormalizedInput(tensor=tensor, orig_size=(orig_w, orig_h), transform=transform)


def normalize(
    image_bytes: bytes,
    profile: Optional[ModelProfile] = None,
    policy: Optional[ResizePolicy] = None,
) -> NormalizedInput:
    """
    Decode image bytes and build the model input tensor.

    Raises DecodeError for invalid bytes and UnsupportedFormatError when the
    colour layout cannot be turned into RGB.
    """

    return normalize_array(decode_image_bytes(image_bytes), profile, policy)
