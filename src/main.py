"""
Exam monitor: person and device detection for a proctored session.

Samples a webcam every few seconds, detects people and handheld devices,
and raises smoothed, rate-limited violation alerts.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-web: Do not start the status API
    --interval: Seconds between monitoring ticks (overrides policy.interval_s)
"""

import argparse
import asyncio
import logging
import os
import sys
import threading
import time
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml

from detection.detector import ObjectDetector
from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuBackend
from models.config import Config
from monitoring.policy import ViolationPolicy
from monitoring.session import MonitoringSession
from observation import OpenCVSource, OpenCVSourceConfig
from ops.logging import setup_logging
from runtime.context import RuntimeContext
from runtime.driver import DriverConfig, MonitorDriver
from runtime.notifier import LoggingNotifier
from storage.db import ViolationStore
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detection', 'monitor', 'storage', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    device_id = camera.get('device_id', 0)
    if not isinstance(device_id, (int, str)) or isinstance(device_id, bool):
        return False, "camera.device_id must be an integer (index) or string (URL/path)"
    if isinstance(device_id, int) and device_id < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(_is_int(x) and x > 0 for x in res):
            return False, "camera.resolution values must be positive integers"

    # Detection
    detection = config.get('detection') or {}
    if detection.get('backend', 'yolo') != 'yolo':
        return False, "detection.backend must be: yolo"
    yolo_cfg = detection.get('yolo') or {}
    if not isinstance(yolo_cfg.get('model'), str) or not yolo_cfg.get('model'):
        return False, "detection.yolo.model is required"
    for key in ('conf_threshold', 'iou_threshold'):
        if key in yolo_cfg and not _is_number(yolo_cfg[key]):
            return False, f"detection.yolo.{key} must be a number"

    # Monitor tunables
    monitor = config.get('monitor') or {}
    if 'allowed_persons' in monitor:
        if not _is_int(monitor['allowed_persons']) or monitor['allowed_persons'] < 0:
            return False, "monitor.allowed_persons must be a non-negative integer"
    for key in ('min_person_score', 'min_device_score'):
        if key in monitor:
            v = monitor[key]
            if not _is_number(v) or not (0 <= v <= 1):
                return False, f"monitor.{key} must be between 0 and 1"
    if 'device_class_names' in monitor:
        names = monitor['device_class_names']
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            return False, "monitor.device_class_names must be a list of strings"
    if 'smoothing_window' in monitor:
        if not _is_int(monitor['smoothing_window']) or monitor['smoothing_window'] < 1:
            return False, "monitor.smoothing_window must be a positive integer"
    if 'trigger_ratio' in monitor:
        v = monitor['trigger_ratio']
        if not _is_number(v) or not (0 < v <= 1):
            return False, "monitor.trigger_ratio must be in (0, 1]"
    for key in ('cooldown_ms', 'cache_freshness_ms'):
        if key in monitor:
            if not _is_int(monitor[key]) or monitor[key] < 0:
                return False, f"monitor.{key} must be a non-negative integer"
    if 'min_box_area_ratio' in monitor:
        v = monitor['min_box_area_ratio']
        if not _is_number(v) or not (0 <= v < 1):
            return False, "monitor.min_box_area_ratio must be in [0, 1)"

    # Policy
    policy = config.get('policy') or {}
    if 'max_violations' in policy:
        if not _is_int(policy['max_violations']) or policy['max_violations'] < 1:
            return False, "policy.max_violations must be a positive integer"
    if 'interval_s' in policy:
        if not _is_number(policy['interval_s']) or policy['interval_s'] <= 0:
            return False, "policy.interval_s must be a positive number"

    # Storage
    storage = config.get('storage') or {}
    if 'local_database_path' not in storage:
        return False, "Missing storage.local_database_path"
    if not isinstance(storage['local_database_path'], str):
        return False, "storage.local_database_path must be a string"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def build_detector(cfg: Config) -> ObjectDetector:
    ycfg = cfg.detection.yolo
    backend_cfg = CpuYoloConfig(
        model=ycfg.model,
        conf_threshold=float(ycfg.conf_threshold),
        iou_threshold=float(ycfg.iou_threshold),
        device=ycfg.device,
    )
    return ObjectDetector(lambda: UltralyticsCpuBackend(backend_cfg))


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Exam Monitor - person and device detection')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the status API')
    parser.add_argument('--interval', type=float, default=None,
                        help='Seconds between monitoring ticks')
    args = parser.parse_args()

    config = load_config(args.config)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)

    logging.info("Starting Exam Monitor")

    store = ViolationStore(cfg.storage.local_database_path)
    store.initialize()

    policy = ViolationPolicy(max_violations=cfg.policy.max_violations)
    session = MonitoringSession(cfg.monitor, build_detector(cfg))
    source = OpenCVSource(OpenCVSourceConfig.from_camera_config(config['camera'], source_id="webcam"))

    web_state.set_store(store)
    web_state.set_policy(policy)
    web_state.set_config(config)
    web_state.update_system_stats({"start_time": time.time()})

    if cfg.web.enabled and not args.no_web:
        def run_web_app():
            uvicorn.run(
                create_app(),
                host=cfg.web.host,
                port=cfg.web.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Status API started on port {cfg.web.port}")

    ctx = RuntimeContext(
        config=config,
        session=session,
        source=source,
        store=store,
        policy=policy,
        notifier=LoggingNotifier(),
        web_state=web_state,
    )
    driver = MonitorDriver(
        ctx,
        DriverConfig(interval_s=args.interval or cfg.policy.interval_s),
    )

    try:
        asyncio.run(driver.run())
    except KeyboardInterrupt:
        logging.info("Monitoring interrupted by user")
    finally:
        store.close()
        logging.info(
            f"Session finished: {policy.count}/{policy.max_violations} AI violations"
        )


if __name__ == "__main__":
    main()
