"""
Violation engine: turns per-tick classifications into rate-limited alerts.

Each violation kind owns a SmoothingWindow and a cooldown timestamp. Kinds
never share state, so a device alert cannot delay a multiple-persons alert
and vice versa.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from models.alert import ViolationAlert, ViolationKind
from models.config import MonitorConfig
from models.detection import ClassifiedObject, ObjectKind
from .smoothing import SmoothingWindow


@dataclass(frozen=True)
class ViolationRule:
    """
    How one violation kind is derived from a tick's classified objects.

    Attributes:
        kind: The violation this rule raises.
        source_kind: Which classified objects the rule looks at.
        condition: Decides, from the matching objects, whether the violation holds now.
        message: Builds the alert message from the matching objects.
        fallback_confidence: Reported when the matching objects carry no positive score.
    """
    kind: ViolationKind
    source_kind: ObjectKind
    condition: Callable[[Sequence[ClassifiedObject]], bool]
    message: Callable[[Sequence[ClassifiedObject]], str]
    fallback_confidence: float


def default_rules(config: MonitorConfig) -> List[ViolationRule]:
    return [
        ViolationRule(
            kind=ViolationKind.MULTIPLE_PERSONS,
            source_kind=ObjectKind.PERSON,
            condition=lambda persons: len(persons) > config.allowed_persons,
            message=lambda persons: f"Multiple people detected ({len(persons)}).",
            fallback_confidence=0.9,
        ),
        ViolationRule(
            kind=ViolationKind.DEVICE_DETECTED,
            source_kind=ObjectKind.DEVICE,
            condition=lambda devices: len(devices) > 0,
            message=lambda devices: "Mobile device detected in camera.",
            fallback_confidence=0.8,
        ),
    ]


class ViolationEngine:
    """
    Smoothing and cooldown state machine for all violation kinds.

    evaluate() is the only mutating call per tick; it must not be called for
    ticks where nothing was observed (hidden surface, empty frame), so those
    ticks leave the windows untouched.
    """

    def __init__(self, config: MonitorConfig):
        self.config = config
        self.rules = default_rules(config)
        self._windows: Dict[ViolationKind, SmoothingWindow] = {
            rule.kind: SmoothingWindow(config.smoothing_window) for rule in self.rules
        }

    def window(self, kind: ViolationKind) -> SmoothingWindow:
        return self._windows[kind]

    def evaluate(self, classified: Sequence[ClassifiedObject], now_ms: int) -> List[ViolationAlert]:
        """
        Push this tick's observation for every kind and return the alerts that fire.

        Args:
            classified: Output of the classifier for this tick.
            now_ms: Wall-clock time of the tick, epoch milliseconds.

        Returns:
            At most one alert per kind, in rule order.
        """
        alerts: List[ViolationAlert] = []
        for rule in self.rules:
            matching = [o for o in classified if o.kind is rule.source_kind]
            window = self._windows[rule.kind]
            ratio = window.push(rule.condition(matching))

            if ratio < self.config.trigger_ratio:
                continue
            if not window.cooldown_elapsed(now_ms, self.config.cooldown_ms):
                continue

            window.last_alert_ms = now_ms
            confidence = max((o.confidence for o in matching), default=0.0)
            alert = ViolationAlert(
                kind=rule.kind,
                message=rule.message(matching),
                timestamp_ms=now_ms,
                confidence=confidence or rule.fallback_confidence,
            )
            logging.info(
                f"Violation {alert.kind.value}: ratio={ratio:.2f} confidence={alert.confidence:.2f}"
            )
            alerts.append(alert)

        return alerts

    def reset(self) -> None:
        """Clear every window and cooldown."""
        for window in self._windows.values():
            window.reset()
