from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Detection:
    """
    One labeled box in original image pixel coordinates.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    label: str
    confidence: float
    class_id: Optional[int] = None

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    def as_tuple(self) -> Tuple[float, float, float, float, str, float]:
        return self.x1, self.y1, self.x2, self.y2, self.label, self.confidence
