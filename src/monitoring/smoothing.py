"""
Fixed-length boolean history used to smooth per-frame detection noise.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List


class SmoothingWindow:
    """
    FIFO of the last `capacity` observations plus the last alert time.

    The ratio divides by the current length, so during warm-up (fewer than
    `capacity` entries) a single observation weighs more.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("smoothing window capacity must be >= 1")
        self.capacity = capacity
        self._values: Deque[bool] = deque(maxlen=capacity)
        self.last_alert_ms = 0

    def __len__(self) -> int:
        return len(self._values)

    def push(self, value: bool) -> float:
        """Append an observation, evicting the oldest at capacity. Returns the new ratio."""
        self._values.append(bool(value))
        return self.ratio

    @property
    def ratio(self) -> float:
        if not self._values:
            return 0.0
        return sum(self._values) / len(self._values)

    def cooldown_elapsed(self, now_ms: int, cooldown_ms: int) -> bool:
        return now_ms - self.last_alert_ms >= cooldown_ms

    def values(self) -> List[bool]:
        return list(self._values)

    def reset(self) -> None:
        self._values.clear()
        self.last_alert_ms = 0
