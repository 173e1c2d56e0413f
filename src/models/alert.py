"""
ViolationAlert model for rate-limited monitoring alerts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ViolationKind(str, Enum):
    MULTIPLE_PERSONS = "multiple_persons"
    DEVICE_DETECTED = "device_detected"


@dataclass(frozen=True)
class ViolationAlert:
    """
    An alert emitted by the violation engine.

    Attributes:
        kind: Which condition fired.
        message: Human-readable description.
        timestamp_ms: Epoch milliseconds when the alert was emitted.
        confidence: Confidence of the triggering detections (0-1).
    """
    kind: ViolationKind
    message: str
    timestamp_ms: int
    confidence: float

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": self.kind.value,
            "message": self.message,
            "timestamp": self.timestamp_ms,
            "confidence": self.confidence,
        }
