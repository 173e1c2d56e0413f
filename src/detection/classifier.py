"""
Maps filtered detector boxes onto the monitor vocabulary {person, device}.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from models.config import MonitorConfig
from models.detection import ClassifiedObject, ObjectKind, RawDetection
from models.snapshot import DetectionSnapshot

PERSON_CLASS = "person"


class Classifier:
    """Applies per-class score thresholds and builds display snapshots."""

    def __init__(self, config: MonitorConfig):
        self.config = config

    def classify_one(self, det: RawDetection) -> Optional[ClassifiedObject]:
        if det.class_name == PERSON_CLASS and det.score >= self.config.min_person_score:
            return ClassifiedObject(kind=ObjectKind.PERSON, bbox=det.bbox, confidence=det.score)
        if self.config.is_device_class(det.class_name) and det.score >= self.config.min_device_score:
            return ClassifiedObject(kind=ObjectKind.DEVICE, bbox=det.bbox, confidence=det.score)
        return None

    def classify(self, detections: Sequence[RawDetection]) -> List[ClassifiedObject]:
        """Return one record per qualifying detection, in input order."""
        out: List[ClassifiedObject] = []
        for det in detections:
            obj = self.classify_one(det)
            if obj is not None:
                out.append(obj)
        return out

    @staticmethod
    def snapshot(classified: Sequence[ClassifiedObject]) -> DetectionSnapshot:
        """
        Summarize classified objects for display.

        Confidence prefers devices over persons. No fallback value is
        substituted here, unlike the alert path.
        """
        person_scores = [o.confidence for o in classified if o.kind is ObjectKind.PERSON]
        device_scores = [o.confidence for o in classified if o.kind is ObjectKind.DEVICE]

        device_detected = len(device_scores) > 0
        if device_detected:
            confidence = max(device_scores)
        elif person_scores:
            confidence = max(person_scores)
        else:
            confidence = 0.0

        return DetectionSnapshot(
            person_count=len(person_scores),
            device_detected=device_detected,
            confidence=confidence,
            objects=tuple(classified),
        )
