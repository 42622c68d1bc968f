class DetectionError(Exception):
    """Base for every failure raised while detecting objects in one image."""


class DecodeError(DetectionError):
    """Image bytes are empty, malformed or not an image."""


class UnsupportedFormatError(DecodeError):
    """Image decoded but its colour layout cannot be normalised to RGB."""


class InferenceError(DetectionError):
    """The inference engine rejected the input or failed internally."""


class ShapeMismatchError(DetectionError):
    """Raw model output does not match the (4 + classes) x candidates layout."""
