"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.config import MonitorConfig  # noqa: E402
from models.detection import RawDetection  # noqa: E402
from models.frame import FrameData  # noqa: E402

# Any realistic epoch-ms value works; cooldown timestamps start at 0.
BASE_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: int = BASE_MS):
        self.now = start_ms

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeBackend:
    """Inference backend returning scripted detections."""

    def __init__(self, detections=None):
        self.detections = list(detections or [])
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        return list(self.detections)


def person(score=0.9, x=100, y=100, w=200, h=300):
    return RawDetection.from_xywh(x, y, w, h, class_name="person", score=score)


def phone(score=0.9, x=400, y=300, w=80, h=120, label="cell phone"):
    return RawDetection.from_xywh(x, y, w, h, class_name=label, score=score)


def make_frame(width=1280, height=720, index=1) -> FrameData:
    if width and height:
        pixels = np.zeros((height, width, 3), dtype=np.uint8)
    else:
        pixels = None
    return FrameData(frame=pixels, width=width, height=height, timestamp=0.0, frame_index=index)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monitor_config():
    return MonitorConfig()


@pytest.fixture
def frame():
    return make_frame()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "yolo"
  yolo:
    model: "yolov8n.pt"

monitor:
  allowed_persons: 1
  smoothing_window: 12
  trigger_ratio: 0.35
  cooldown_ms: 4000

storage:
  local_database_path: "data/test.sqlite"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "yolo",
            "yolo": {"model": "yolov8n.pt", "conf_threshold": 0.25},
        },
        "monitor": {
            "allowed_persons": 1,
            "min_person_score": 0.55,
            "min_device_score": 0.60,
            "device_class_names": ["cell phone"],
            "smoothing_window": 12,
            "trigger_ratio": 0.35,
            "cooldown_ms": 4000,
            "min_box_area_ratio": 0.004,
            "cache_freshness_ms": 300,
        },
        "policy": {"max_violations": 5, "interval_s": 2.0},
        "storage": {
            "local_database_path": "data/test.sqlite",
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
