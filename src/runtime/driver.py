"""
Driver loop for a monitoring session.

The driver owns all side effects: it samples the frame source, asks the
session for alerts and a snapshot, then stores, scores and notifies each
alert in order. The session itself stays free of I/O.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List

from models.alert import ViolationAlert
from monitoring.policy import WarningLevel
from .context import RuntimeContext
from .notifier import TERMINATION_MESSAGE


@dataclass
class DriverConfig:
    """
    Attributes:
        interval_s: Seconds between tick starts.
        stats_log_interval: Seconds between status log messages.
    """
    interval_s: float = 2.0
    stats_log_interval: float = 60.0


@dataclass
class DriverStats:
    tick_count: int = 0
    skipped_ticks: int = 0
    missing_frames: int = 0
    alert_count: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class MonitorDriver:
    """
    Runs ticks until stopped or until the policy terminates the session.

    A tick never overlaps the previous one: tick() called while another tick
    is pending returns immediately with no alerts.
    """

    def __init__(self, ctx: RuntimeContext, config: DriverConfig):
        self.ctx = ctx
        self.config = config
        self.stats = DriverStats()
        self._running = False
        self._tick_pending = False

    @property
    def running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Signal the loop to stop after the current tick."""
        self._running = False

    async def tick(self) -> List[ViolationAlert]:
        if self._tick_pending:
            self.stats.skipped_ticks += 1
            logging.debug("Previous tick still pending, skipping")
            return []

        self._tick_pending = True
        try:
            return await self._run_tick()
        finally:
            self._tick_pending = False

    async def _run_tick(self) -> List[ViolationAlert]:
        session = self.ctx.session
        self.stats.tick_count += 1

        if not session.is_ready():
            ready = await session.initialize()
            self.ctx.update_stats({"detector_state": session.detector.state.value})
            if not ready:
                logging.warning("Detector not ready, monitoring paused for this tick")
                return []

        frame_data = await asyncio.to_thread(self.ctx.source.read)
        if frame_data is None:
            self.stats.missing_frames += 1
            return []

        alerts = await session.analyze_for_violations(frame_data, visible=self.ctx.is_visible())
        snapshot = await session.detect_state(frame_data)
        self.ctx.publish_snapshot(snapshot)

        await self.dispatch(alerts)
        return alerts

    async def dispatch(self, alerts: List[ViolationAlert]) -> None:
        """
        Persist every alert, then score and notify each one in order.

        Once the policy has terminated the session, the remaining alerts of
        the batch are still logged and stored but no longer escalated.
        """
        for alert in alerts:
            self.stats.alert_count += 1
            self.ctx.record_alert(alert)

            if self.ctx.store is not None:
                try:
                    self.ctx.store.add_alert(alert)
                except Exception as e:
                    logging.error(f"Failed to store alert: {e}")

            if self.ctx.policy.terminated:
                continue

            decision = self.ctx.policy.record(alert)
            await self._notify(decision.progress_message, decision)

            if decision.level is WarningLevel.TERMINATED:
                logging.warning(
                    f"Maximum AI violations reached ({decision.count}/{decision.max_violations}), "
                    f"ending session"
                )
                await self._notify(TERMINATION_MESSAGE, decision)
                self.stop()

    async def _notify(self, activity: str, decision) -> None:
        try:
            await self.ctx.notifier.notify(activity, decision)
        except Exception as e:
            logging.error(f"Failed to send notification: {e}")

    async def run(self) -> None:
        """Open the source and tick every interval_s until stopped."""
        self._running = True
        self.stats = DriverStats()
        loop = asyncio.get_running_loop()

        try:
            self.ctx.source.open()
            logging.info(f"Monitoring started: source={self.ctx.source.source_id}")

            ready = await self.ctx.session.initialize()
            self.ctx.update_stats({"detector_state": self.ctx.session.detector.state.value})
            if not ready:
                logging.error("Detector failed to initialize; retrying on each tick")

            while self._running:
                started = loop.time()
                await self.tick()
                if self.ctx.policy.terminated:
                    break
                self._log_stats()
                elapsed = loop.time() - started
                await asyncio.sleep(max(0.0, self.config.interval_s - elapsed))
        finally:
            self._running = False
            self.ctx.source.close()
            logging.info(
                f"Monitoring stopped: ticks={self.stats.tick_count}, alerts={self.stats.alert_count}"
            )

    def _log_stats(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time < self.config.stats_log_interval:
            return
        self.stats.last_stats_log_time = now
        snap = self.ctx.latest_snapshot
        logging.info(
            f"Status: ticks={self.stats.tick_count}, skipped={self.stats.skipped_ticks}, "
            f"alerts={self.stats.alert_count}, persons={snap.person_count if snap else 0}, "
            f"device={snap.device_detected if snap else False}"
        )
