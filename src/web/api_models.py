from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DetectedObjectModel(BaseModel):
    type: str = Field(..., description="person|device")
    x: float
    y: float
    width: float
    height: float
    confidence: float


class SnapshotResponse(BaseModel):
    person_count: int = 0
    device_detected: bool = False
    confidence: float = 0.0
    objects: List[DetectedObjectModel] = Field(default_factory=list)


class AlertModel(BaseModel):
    type: str = Field(..., description="multiple_persons|device_detected")
    message: str
    timestamp: int = Field(..., description="Epoch milliseconds")
    confidence: float


class AlertsResponse(BaseModel):
    alerts: List[AlertModel]
    total: int
    by_kind: Dict[str, int] = Field(default_factory=dict)


class StatusResponse(BaseModel):
    """Compact status for frontend polling."""
    running: bool = Field(..., description="True if a tick completed recently")
    detector_state: Optional[str] = None
    last_tick_age_s: Optional[float] = None
    uptime_seconds: Optional[int] = None
    violation_count: int = 0
    max_violations: Optional[int] = None
    terminated: bool = False
    warnings: List[str] = Field(default_factory=list)
