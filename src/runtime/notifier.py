"""
Outbound violation notifications.

Delivery channels (email, chat) live outside this project; they plug in by
implementing the Notifier protocol.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Tuple

from monitoring.policy import PolicyDecision

TERMINATION_MESSAGE = "Session terminated - Maximum AI violations exceeded"


class Notifier(Protocol):
    async def notify(self, activity: str, decision: PolicyDecision) -> None:
        ...


class LoggingNotifier:
    """Writes notifications to the application log."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger("notifications")

    async def notify(self, activity: str, decision: PolicyDecision) -> None:
        self._log.warning(
            f"[{decision.level.value.upper()}] {activity} "
            f"({decision.remaining} remaining, confidence={decision.alert.confidence:.2f})"
        )


class RecordingNotifier:
    """Keeps notifications in memory; handy for dry runs and tests."""

    def __init__(self):
        self.sent: List[Tuple[str, PolicyDecision]] = []

    async def notify(self, activity: str, decision: PolicyDecision) -> None:
        self.sent.append((activity, decision))
