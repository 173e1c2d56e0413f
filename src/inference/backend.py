"""
Inference backend interface.

Backends return labeled boxes in the original frame coordinate system,
as (x, y, width, height) with the detector's own class names.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import RawDetection


class InferenceBackend(Protocol):
    def detect(self, frame: np.ndarray) -> List[RawDetection]:
        ...
