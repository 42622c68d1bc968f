"""
Inference backends for yolo_detect.

Backends are kept in a separate module so pre/post-processing stays usable
without importing an inference runtime.
"""

from __future__ import annotations

__all__ = []
