"""
Temporal smoothing, violation alerts and session policy.
"""

from .smoothing import SmoothingWindow
from .violations import ViolationEngine, ViolationRule
from .session import MonitoringSession
from .policy import ViolationPolicy, PolicyDecision, WarningLevel

__all__ = [
    "SmoothingWindow",
    "ViolationEngine",
    "ViolationRule",
    "MonitoringSession",
    "ViolationPolicy",
    "PolicyDecision",
    "WarningLevel",
]
