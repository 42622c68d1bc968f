from __future__ import annotations

import cv2
import numpy as np

from .errors import DecodeError, UnsupportedFormatError


def decode_image_bytes(data: bytes) -> np.ndarray:
    """
    Decode an encoded image buffer into an RGB ``uint8`` array of shape (H, W, 3).

    Greyscale is expanded to three channels, alpha is dropped and 16-bit
    images are reduced to 8 bits.
    """

    if not data:
        raise DecodeError("Image buffer is empty.")

    try:
        image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    except cv2.error as exc:
        raise DecodeError(f"Could not decode image bytes: {exc}") from exc
    if image is None:
        raise DecodeError("Buffer is not a valid image.")

    return to_rgb(image)


def to_rgb(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV-decoded array (grey, BGR or BGRA) to RGB uint8."""

    if image.dtype == np.uint16:
        image = (image // 257).astype(np.uint8)
    elif image.dtype != np.uint8:
        raise UnsupportedFormatError(f"Unsupported pixel type {image.dtype}.")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.ndim != 3:
        raise UnsupportedFormatError(f"Unsupported image shape {image.shape}.")

    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    raise UnsupportedFormatError(f"Cannot normalise {channels}-channel image to RGB.")


def read_image_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()
