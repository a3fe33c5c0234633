from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box in original image pixels: top-left corner plus extent.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        return cls(x=float(x1), y=float(y1), width=float(x2 - x1), height=float(y2 - y1))

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.x2, self.y2

    def as_xywh(self) -> Tuple[float, float, float, float]:
        return self.x, self.y, self.width, self.height

    def clamp(self, frame_width: float, frame_height: float) -> "BoundingBox":
        """
        Clip the box to ``[0, frame_width] x [0, frame_height]``.

        Boxes lying entirely outside the frame collapse to zero extent on the
        nearest edge rather than going negative.
        """

        x1 = min(max(self.x, 0.0), frame_width)
        y1 = min(max(self.y, 0.0), frame_height)
        x2 = min(max(self.x2, 0.0), frame_width)
        y2 = min(max(self.y2, 0.0), frame_height)
        return BoundingBox(x=x1, y=y1, width=max(0.0, x2 - x1), height=max(0.0, y2 - y1))

    def iou(self, other: "BoundingBox") -> float:
        from .geometry import iou

        return iou(self, other)

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Detection:
    """
    One labelled object found in an image.
    """

    class_id: int
    class_name: str
    confidence: float
    bbox: BoundingBox

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.bbox.as_xyxy()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classId": self.class_id,
            "class": self.class_name,
            "confidence": self.confidence,
            "bbox": self.bbox.to_dict(),
        }


@dataclass(frozen=True)
class DetectionResult:
    detections: Tuple[Detection, ...]
    inference_time_ms: int
    timestamp_ms: int

    def __len__(self) -> int:
        return len(self.detections)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detections": [d.to_dict() for d in self.detections],
            "inferenceTime": self.inference_time_ms,
            "timestamp": self.timestamp_ms,
        }
