"""
Prediction cache shared by the alert and display paths of one tick.

Both paths ask for predictions on the same frame a few milliseconds apart;
the second call must reuse the first result rather than run inference again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from models.detection import RawDetection
from models.frame import FrameData
from .box_filter import filter_small_boxes
from .detector import ObjectDetector


@dataclass(frozen=True)
class CacheEntry:
    captured_at_ms: int
    predictions: List[RawDetection]


class PredictionCache:
    """
    Holds the most recent filtered predictions.

    Not safe for concurrent mutation from several threads; it is meant to be
    used from a single asyncio task.
    """

    def __init__(
        self,
        detector: ObjectDetector,
        freshness_ms: int,
        min_box_area_ratio: float,
        clock: Callable[[], int],
    ):
        self.detector = detector
        self.freshness_ms = freshness_ms
        self.min_box_area_ratio = min_box_area_ratio
        self._clock = clock
        self._entry: Optional[CacheEntry] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        return self._entry

    def clear(self) -> None:
        self._entry = None

    async def get_predictions(self, frame: FrameData) -> List[RawDetection]:
        # Nothing to observe; leave any cached entry alone.
        if not self.detector.is_ready() or not frame.has_pixels:
            return []

        now = self._clock()
        if self._entry is not None and now - self._entry.captured_at_ms < self.freshness_ms:
            return self._entry.predictions

        preds = await self.detector.detect(frame)
        filtered = filter_small_boxes(frame.width, frame.height, preds, self.min_box_area_ratio)
        if len(filtered) != len(preds):
            logging.debug(f"Box filter dropped {len(preds) - len(filtered)} of {len(preds)} detections")

        self._entry = CacheEntry(captured_at_ms=now, predictions=filtered)
        return filtered
