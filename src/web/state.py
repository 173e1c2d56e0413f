import threading
from collections import deque
from typing import Deque, List, Optional

from models.alert import ViolationAlert
from models.snapshot import DetectionSnapshot

MAX_RECENT_ALERTS = 200


class SharedState:
    """
    Singleton class to share state between the monitoring loop
    and the FastAPI web server thread.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance._reset()
        return cls._instance

    def _reset(self):
        self.data_lock = threading.Lock()
        self.snapshot: Optional[DetectionSnapshot] = None
        self.alerts: Deque[ViolationAlert] = deque(maxlen=MAX_RECENT_ALERTS)
        self.store = None
        self.policy = None
        self.config = None
        self.system_stats = {
            "start_time": 0,
            "last_tick_ts": None,
            "detector_state": None,
        }

    def set_snapshot(self, snapshot: DetectionSnapshot):
        with self.data_lock:
            self.snapshot = snapshot

    def get_snapshot(self) -> Optional[DetectionSnapshot]:
        with self.data_lock:
            return self.snapshot

    def add_alert(self, alert: ViolationAlert):
        with self.data_lock:
            self.alerts.append(alert)

    def get_alerts(self) -> List[ViolationAlert]:
        with self.data_lock:
            return list(self.alerts)

    def set_store(self, store):
        self.store = store

    def set_policy(self, policy):
        self.policy = policy

    def set_config(self, config):
        with self.data_lock:
            self.config = config

    def update_system_stats(self, stats):
        with self.data_lock:
            self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        with self.data_lock:
            return dict(self.system_stats)

    def clear(self):
        """Drop everything; used between sessions and in tests."""
        self._reset()


# Global instance
state = SharedState()
