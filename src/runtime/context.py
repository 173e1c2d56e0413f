from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from models.alert import ViolationAlert
from models.snapshot import DetectionSnapshot


def always_visible() -> bool:
    return True


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: dict
    session: Any
    source: Any
    store: Any
    policy: Any
    notifier: Any
    web_state: Any = None
    visibility: Callable[[], bool] = always_visible

    # Caller-owned alert log; the monitoring core never mutates it.
    alerts: List[ViolationAlert] = field(default_factory=list)

    # Observability
    system_stats: dict = field(default_factory=dict)

    latest_snapshot: Optional[DetectionSnapshot] = None

    def is_visible(self) -> bool:
        return bool(self.visibility())

    def update_stats(self, stats: dict) -> None:
        self.system_stats.update(stats)
        if hasattr(self.web_state, "update_system_stats"):
            self.web_state.update_system_stats(stats)

    def publish_snapshot(self, snapshot: DetectionSnapshot) -> None:
        self.latest_snapshot = snapshot
        if hasattr(self.web_state, "set_snapshot"):
            self.web_state.set_snapshot(snapshot)
        self.update_stats({"last_tick_ts": time.time()})

    def record_alert(self, alert: ViolationAlert) -> None:
        self.alerts.append(alert)
        if hasattr(self.web_state, "add_alert"):
            self.web_state.add_alert(alert)

    def get_system_stats_copy(self):
        return dict(self.system_stats)
