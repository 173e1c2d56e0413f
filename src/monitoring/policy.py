"""
Session policy: escalating warnings and termination after too many alerts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from models.alert import ViolationAlert


class WarningLevel(str, Enum):
    NOTICE = "notice"
    SERIOUS = "serious"
    FINAL = "final"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class PolicyDecision:
    alert: ViolationAlert
    count: int
    max_violations: int
    level: WarningLevel

    @property
    def remaining(self) -> int:
        return max(self.max_violations - self.count, 0)

    @property
    def progress_message(self) -> str:
        return f"{self.alert.message} (AI Violation {self.count}/{self.max_violations})"


class ViolationPolicy:
    """
    Counts alerts for a session and decides how loudly to warn.

    The count at or above max_violations terminates the session; the two
    counts just below it get SERIOUS and FINAL warnings.
    """

    def __init__(self, max_violations: int = 5):
        if max_violations < 1:
            raise ValueError("max_violations must be >= 1")
        self.max_violations = max_violations
        self.count = 0

    @property
    def terminated(self) -> bool:
        return self.count >= self.max_violations

    def level_for(self, count: int) -> WarningLevel:
        if count >= self.max_violations:
            return WarningLevel.TERMINATED
        if count >= self.max_violations - 1:
            return WarningLevel.FINAL
        if count >= self.max_violations - 2:
            return WarningLevel.SERIOUS
        return WarningLevel.NOTICE

    def record(self, alert: ViolationAlert) -> PolicyDecision:
        self.count += 1
        return PolicyDecision(
            alert=alert,
            count=self.count,
            max_violations=self.max_violations,
            level=self.level_for(self.count),
        )

    def reset(self) -> None:
        self.count = 0
