"""
DetectionSnapshot model: what the camera shows right now.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .detection import ClassifiedObject


@dataclass(frozen=True)
class DetectionSnapshot:
    """
    Current detection state for display. Carries no history.

    Attributes:
        person_count: Number of PERSON records this tick.
        device_detected: True if any DEVICE record is present.
        confidence: Max device confidence if a device is present, else max
            person confidence, else 0.
        objects: Classified objects in detector order.
    """
    person_count: int = 0
    device_detected: bool = False
    confidence: float = 0.0
    objects: Tuple[ClassifiedObject, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "DetectionSnapshot":
        return cls()

    def to_dict(self) -> dict:
        return {
            "person_count": self.person_count,
            "device_detected": self.device_detected,
            "confidence": self.confidence,
            "objects": [o.to_dict() for o in self.objects],
        }
