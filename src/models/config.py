"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Union


def _normalize_class_names(names: Iterable[str]) -> FrozenSet[str]:
    return frozenset(str(n).lower() for n in names)


@dataclass(frozen=True)
class MonitorConfig:
    """
    Detection-to-violation tunables. Read-only once a session starts.

    Attributes:
        allowed_persons: Person count at or below which no violation is raised.
        min_person_score: Minimum score for a "person" box to count.
        min_device_score: Minimum score for a device box to count.
        device_class_names: Detector labels treated as handheld devices (lowercase).
        smoothing_window: Capacity of each per-kind boolean history.
        trigger_ratio: Fraction of true entries needed to raise an alert.
        cooldown_ms: Minimum time between two alerts of the same kind.
        min_box_area_ratio: Boxes smaller than this share of the frame are dropped.
        cache_freshness_ms: Predictions younger than this are reused.
    """
    allowed_persons: int = 1
    min_person_score: float = 0.55
    min_device_score: float = 0.60
    device_class_names: FrozenSet[str] = field(default_factory=lambda: frozenset({"cell phone"}))
    smoothing_window: int = 12
    trigger_ratio: float = 0.35
    cooldown_ms: int = 4000
    min_box_area_ratio: float = 0.004
    cache_freshness_ms: int = 300

    def __post_init__(self) -> None:
        # Accept any iterable from YAML and store a lowercase frozenset.
        object.__setattr__(self, "device_class_names", _normalize_class_names(self.device_class_names))

    def is_device_class(self, class_name: str) -> bool:
        return class_name.lower() in self.device_class_names

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MonitorConfig":
        return cls(
            allowed_persons=int(d.get("allowed_persons", 1)),
            min_person_score=float(d.get("min_person_score", 0.55)),
            min_device_score=float(d.get("min_device_score", 0.60)),
            device_class_names=d.get("device_class_names", ["cell phone"]),
            smoothing_window=int(d.get("smoothing_window", 12)),
            trigger_ratio=float(d.get("trigger_ratio", 0.35)),
            cooldown_ms=int(d.get("cooldown_ms", 4000)),
            min_box_area_ratio=float(d.get("min_box_area_ratio", 0.004)),
            cache_freshness_ms=int(d.get("cache_freshness_ms", 300)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed_persons": self.allowed_persons,
            "min_person_score": self.min_person_score,
            "min_device_score": self.min_device_score,
            "device_class_names": sorted(self.device_class_names),
            "smoothing_window": self.smoothing_window,
            "trigger_ratio": self.trigger_ratio,
            "cooldown_ms": self.cooldown_ms,
            "min_box_area_ratio": self.min_box_area_ratio,
            "cache_freshness_ms": self.cache_freshness_ms,
        }


@dataclass
class CameraConfig:
    """Camera configuration."""
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
        }


@dataclass
class YoloConfig:
    """YOLO detector configuration."""
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    device: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "YoloConfig":
        return cls(
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
            device=d.get("device"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
        }
        if self.device is not None:
            d["device"] = self.device
        return d


@dataclass
class DetectionConfig:
    """Detection configuration."""
    backend: str = "yolo"
    yolo: YoloConfig = field(default_factory=YoloConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectionConfig":
        return cls(
            backend=d.get("backend", "yolo"),
            yolo=YoloConfig.from_dict(d.get("yolo") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "yolo": self.yolo.to_dict(),
        }


@dataclass
class PolicyConfig:
    """Session policy: how many AI violations end a session."""
    max_violations: int = 5
    interval_s: float = 2.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PolicyConfig":
        return cls(
            max_violations=d.get("max_violations", 5),
            interval_s=d.get("interval_s", 2.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_violations": self.max_violations,
            "interval_s": self.interval_s,
        }


@dataclass
class StorageConfig:
    """Storage configuration."""
    local_database_path: str = "data/violations.sqlite"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StorageConfig":
        return cls(
            local_database_path=d.get("local_database_path", "data/violations.sqlite"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "local_database_path": self.local_database_path,
        }


@dataclass
class WebConfig:
    """Status API configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/exam_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            detection=DetectionConfig.from_dict(d.get("detection") or {}),
            monitor=MonitorConfig.from_dict(d.get("monitor") or {}),
            policy=PolicyConfig.from_dict(d.get("policy") or {}),
            storage=StorageConfig.from_dict(d.get("storage") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/exam_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "camera": self.camera.to_dict(),
            "detection": self.detection.to_dict(),
            "monitor": self.monitor.to_dict(),
            "policy": self.policy.to_dict(),
            "storage": self.storage.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
