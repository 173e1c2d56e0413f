from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

from fastapi import APIRouter, Query

from ..api_models import AlertsResponse, SnapshotResponse, StatusResponse
from ..state import state

router = APIRouter()


def _compute_warnings(last_tick_age_s: Optional[float], detector_state: Optional[str]) -> List[str]:
    """
    Warning flags for the status endpoint.

    Thresholds:
    - monitor_stale: last_tick_age_s > 10
    - monitor_offline: no tick yet
    - detector_failed: detector_state == "failed"
    """
    warnings = []
    if last_tick_age_s is None:
        warnings.append("monitor_offline")
    elif last_tick_age_s > 10:
        warnings.append("monitor_stale")

    if detector_state == "failed":
        warnings.append("detector_failed")

    return warnings


@router.get("/snapshot", response_model=SnapshotResponse)
def snapshot():
    """Latest detection snapshot; empty before the first tick."""
    snap = state.get_snapshot()
    if snap is None:
        return SnapshotResponse()
    return snap.to_dict()


@router.get("/alerts", response_model=AlertsResponse)
def alerts(limit: int = Query(50, ge=1, le=500)):
    """Recent alerts, newest first, with persisted totals when a store is attached."""
    recent = [a.to_dict() for a in reversed(state.get_alerts())][:limit]
    total = len(state.get_alerts())
    by_kind: Dict[str, int] = {}

    if state.store is not None:
        try:
            total = state.store.get_alert_count()
            by_kind = state.store.get_counts_by_kind()
        except Exception as e:
            logging.warning(f"Error reading alert counts: {e}")
    else:
        for a in state.get_alerts():
            by_kind[a.kind.value] = by_kind.get(a.kind.value, 0) + 1

    return {"alerts": recent, "total": total, "by_kind": by_kind}


@router.get("/status", response_model=StatusResponse)
def status():
    now = time.time()
    sys_stats = state.get_system_stats_copy()
    last_tick_ts = sys_stats.get("last_tick_ts")
    last_tick_age_s = (now - last_tick_ts) if last_tick_ts else None
    start_time = sys_stats.get("start_time") or None
    detector_state = sys_stats.get("detector_state")

    policy = state.policy
    warnings = _compute_warnings(last_tick_age_s, detector_state)

    return {
        "running": last_tick_age_s is not None and last_tick_age_s <= 10,
        "detector_state": detector_state,
        "last_tick_age_s": last_tick_age_s,
        "uptime_seconds": int(now - start_time) if start_time else None,
        "violation_count": policy.count if policy is not None else 0,
        "max_violations": policy.max_violations if policy is not None else None,
        "terminated": policy.terminated if policy is not None else False,
        "warnings": warnings,
    }
