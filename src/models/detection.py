"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned box in frame pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
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
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple for drawing."""
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class RawDetection:
    """
    A single labeled box returned by the detector.

    Attributes:
        bbox: Bounding box in frame pixel coordinates.
        class_name: Detector vocabulary label (e.g. "person", "cell phone").
        score: Detection confidence score (0-1).
    """
    bbox: BoundingBox
    class_name: str
    score: float

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float, class_name: str, score: float) -> "RawDetection":
        return cls(bbox=BoundingBox(x=x, y=y, width=w, height=h), class_name=class_name, score=score)

    def to_dict(self) -> dict:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "class_name": self.class_name,
            "score": self.score,
        }


class ObjectKind(str, Enum):
    """Detection vocabulary the monitor cares about."""

    PERSON = "person"
    DEVICE = "device"


@dataclass(frozen=True)
class ClassifiedObject:
    """A detection that passed its class threshold, mapped to an ObjectKind."""

    kind: ObjectKind
    bbox: BoundingBox
    confidence: float

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "x": self.bbox.x,
            "y": self.bbox.y,
            "width": self.bbox.width,
            "height": self.bbox.height,
            "confidence": self.confidence,
        }
