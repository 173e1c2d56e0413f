"""
Monitoring session: one camera, one detector, one set of smoothing state.

All mutable monitoring state lives here instead of in module globals, so
several sessions can run side by side and tests can inject a fake clock and
a fake detector.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from detection.cache import PredictionCache
from detection.classifier import Classifier
from detection.detector import ObjectDetector
from models.alert import ViolationAlert
from models.config import MonitorConfig
from models.frame import FrameData
from models.snapshot import DetectionSnapshot
from .violations import ViolationEngine


def wall_clock_ms() -> int:
    return int(time.time() * 1000)


class MonitoringSession:
    """
    Entry point of the detection-to-violation pipeline.

    Per tick the driver calls analyze_for_violations() (alert path) and then
    detect_state() (display path). The second call reuses the prediction
    cached by the first one.
    """

    def __init__(
        self,
        config: MonitorConfig,
        detector: ObjectDetector,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.config = config
        self.detector = detector
        self._clock = clock or wall_clock_ms
        self.classifier = Classifier(config)
        self.cache = PredictionCache(
            detector,
            freshness_ms=config.cache_freshness_ms,
            min_box_area_ratio=config.min_box_area_ratio,
            clock=self._clock,
        )
        self.engine = ViolationEngine(config)

    def is_ready(self) -> bool:
        return self.detector.is_ready()

    async def initialize(self) -> bool:
        """
        Load the detector. A fresh load starts with clean smoothing state.

        Returns False if the model could not be loaded; calling again retries.
        """
        if self.detector.is_ready():
            return True
        ok = await self.detector.initialize()
        if ok:
            self.reset()
        return ok

    def reset(self) -> None:
        """Clear smoothing windows, cooldowns and the cached prediction."""
        self.engine.reset()
        self.cache.clear()
        logging.debug("Monitoring session state reset")

    async def analyze_for_violations(self, frame: FrameData, visible: bool = True) -> List[ViolationAlert]:
        """
        Run one alert tick.

        A tick where the detector is not ready, the frame has no pixels or the
        monitoring surface is hidden counts as "no observation": it returns no
        alerts and does not touch the smoothing windows.
        """
        if not self.detector.is_ready():
            return []
        if not frame.has_pixels:
            return []
        if not visible:
            return []

        preds = await self.cache.get_predictions(frame)
        classified = self.classifier.classify(preds)
        return self.engine.evaluate(classified, self._clock())

    async def detect_state(self, frame: FrameData) -> DetectionSnapshot:
        """Current snapshot for display; no smoothing, no rate limiting."""
        if not self.detector.is_ready() or not frame.has_pixels:
            return DetectionSnapshot.empty()

        preds = await self.cache.get_predictions(frame)
        return self.classifier.snapshot(self.classifier.classify(preds))
