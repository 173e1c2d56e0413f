"""
Typed models for the exam monitor application.

Detections, snapshots and alerts are immutable; configuration is read-only
once a monitoring session starts.
"""

from .frame import FrameData
from .detection import BoundingBox, RawDetection, ObjectKind, ClassifiedObject
from .snapshot import DetectionSnapshot
from .alert import ViolationAlert, ViolationKind
from .config import (
    Config,
    CameraConfig,
    DetectionConfig,
    YoloConfig,
    MonitorConfig,
    PolicyConfig,
    StorageConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "RawDetection",
    "ObjectKind",
    "ClassifiedObject",
    "DetectionSnapshot",
    # Alerts
    "ViolationAlert",
    "ViolationKind",
    # Config
    "Config",
    "CameraConfig",
    "DetectionConfig",
    "YoloConfig",
    "MonitorConfig",
    "PolicyConfig",
    "StorageConfig",
    "WebConfig",
]
