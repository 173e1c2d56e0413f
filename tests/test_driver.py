"""
Tests for the monitor driver loop and alert dispatch.
"""

import asyncio
import logging
import threading
from unittest.mock import MagicMock

from conftest import BASE_MS, FakeBackend, FakeClock, make_frame, person, phone
from detection.detector import ObjectDetector
from models.alert import ViolationAlert, ViolationKind
from models.config import MonitorConfig
from monitoring.policy import ViolationPolicy, WarningLevel
from monitoring.session import MonitoringSession
from runtime.context import RuntimeContext
from runtime.driver import DriverConfig, MonitorDriver
from runtime.notifier import TERMINATION_MESSAGE, RecordingNotifier
from web.state import state


class FakeSource:
    source_id = "fake"

    def __init__(self, frames=None, endless=True):
        self.frames = list(frames or [])
        self.endless = endless
        self.opened = False
        self.closed = False
        self.reads = 0
        self.read_threads = []

    def open(self):
        self.opened = True

    def read(self):
        self.reads += 1
        self.read_threads.append(threading.get_ident())
        if self.frames:
            return self.frames.pop(0)
        return make_frame(index=self.reads) if self.endless else None

    def close(self):
        self.closed = True


def _make_ctx(detections=None, factory=None, max_violations=5, config=None, source=None, store=None):
    backend = FakeBackend(detections)
    detector = ObjectDetector(factory or (lambda: backend))
    clock = FakeClock()
    session = MonitoringSession(config or MonitorConfig(cooldown_ms=0), detector, clock=clock)
    ctx = RuntimeContext(
        config={},
        session=session,
        source=source or FakeSource(),
        store=store,
        policy=ViolationPolicy(max_violations),
        notifier=RecordingNotifier(),
    )
    return ctx, backend, clock


def _alert(i, kind=ViolationKind.DEVICE_DETECTED):
    return ViolationAlert(kind=kind, message=f"alert {i}", timestamp_ms=BASE_MS + i, confidence=0.8)


class TestDispatch:
    def test_dispatches_in_order(self):
        ctx, _, _ = _make_ctx()
        driver = MonitorDriver(ctx, DriverConfig())
        alerts = [_alert(1), _alert(2, ViolationKind.MULTIPLE_PERSONS)]

        asyncio.run(driver.dispatch(alerts))

        assert ctx.alerts == alerts
        assert [a for a, _ in ctx.notifier.sent] == ["alert 1 (AI Violation 1/5)", "alert 2 (AI Violation 2/5)"]
        assert ctx.policy.count == 2

    def test_stops_at_max_violations(self):
        store = MagicMock()
        ctx, _, _ = _make_ctx(max_violations=3, store=store)
        driver = MonitorDriver(ctx, DriverConfig())
        driver._running = True
        batch = [_alert(i) for i in range(5)]

        asyncio.run(driver.dispatch(batch))

        assert ctx.policy.count == 3
        assert ctx.alerts == batch
        assert store.add_alert.call_count == 5
        messages = [a for a, _ in ctx.notifier.sent]
        assert messages[-1] == TERMINATION_MESSAGE
        assert len(messages) == 4
        assert ctx.notifier.sent[-1][1].level is WarningLevel.TERMINATED
        assert not driver.running

    def test_terminating_alert_keeps_rest_of_batch(self):
        store = MagicMock()
        ctx, _, _ = _make_ctx(max_violations=1, store=store)
        driver = MonitorDriver(ctx, DriverConfig())
        batch = [_alert(1, ViolationKind.MULTIPLE_PERSONS), _alert(2, ViolationKind.DEVICE_DETECTED)]

        asyncio.run(driver.dispatch(batch))

        assert [a.kind for a in ctx.alerts] == [ViolationKind.MULTIPLE_PERSONS, ViolationKind.DEVICE_DETECTED]
        assert [c.args[0] for c in store.add_alert.call_args_list] == batch
        assert ctx.policy.count == 1
        assert [a for a, _ in ctx.notifier.sent] == ["alert 1 (AI Violation 1/1)", TERMINATION_MESSAGE]

    def test_no_escalation_after_termination(self):
        ctx, _, _ = _make_ctx(max_violations=1)
        driver = MonitorDriver(ctx, DriverConfig())
        asyncio.run(driver.dispatch([_alert(1)]))
        sent_before = len(ctx.notifier.sent)

        asyncio.run(driver.dispatch([_alert(2)]))

        assert len(ctx.alerts) == 2
        assert ctx.policy.count == 1
        assert len(ctx.notifier.sent) == sent_before

    def test_store_failure_does_not_stop_dispatch(self, caplog):
        store = MagicMock()
        store.add_alert.side_effect = RuntimeError("disk full")
        ctx, _, _ = _make_ctx(store=store)
        driver = MonitorDriver(ctx, DriverConfig())

        with caplog.at_level(logging.ERROR):
            asyncio.run(driver.dispatch([_alert(1)]))

        assert ctx.policy.count == 1
        assert len(ctx.notifier.sent) == 1
        assert "Failed to store alert" in caplog.text

    def test_store_receives_alerts(self):
        store = MagicMock()
        ctx, _, _ = _make_ctx(store=store)
        alert = _alert(1)
        asyncio.run(MonitorDriver(ctx, DriverConfig()).dispatch([alert]))
        store.add_alert.assert_called_once_with(alert)

    def test_mirrors_into_web_state(self):
        state.clear()
        ctx, _, _ = _make_ctx()
        ctx.web_state = state
        asyncio.run(MonitorDriver(ctx, DriverConfig()).dispatch([_alert(1)]))
        assert [a.message for a in state.get_alerts()] == ["alert 1"]
        state.clear()


class TestTick:
    def test_tick_publishes_snapshot_and_alerts(self):
        ctx, backend, _ = _make_ctx([person(0.9), phone(0.8)])
        driver = MonitorDriver(ctx, DriverConfig())

        alerts = asyncio.run(driver.tick())

        assert [a.kind for a in alerts] == [ViolationKind.DEVICE_DETECTED]
        assert ctx.latest_snapshot.person_count == 1
        assert ctx.latest_snapshot.device_detected is True
        assert backend.calls == 1
        assert ctx.system_stats["detector_state"] == "ready"
        assert "last_tick_ts" in ctx.system_stats

    def test_missing_frame(self):
        ctx, backend, _ = _make_ctx([person(), person()], source=FakeSource(endless=False))
        driver = MonitorDriver(ctx, DriverConfig())

        assert asyncio.run(driver.tick()) == []
        assert driver.stats.missing_frames == 1
        assert ctx.latest_snapshot is None
        assert backend.calls == 0

    def test_frame_read_off_event_loop_thread(self):
        source = FakeSource()
        ctx, _, _ = _make_ctx([person()], source=source)
        driver = MonitorDriver(ctx, DriverConfig())

        asyncio.run(driver.tick())

        assert source.read_threads
        assert threading.get_ident() not in source.read_threads

    def test_hidden_surface_still_publishes_snapshot(self):
        ctx, _, _ = _make_ctx([person(), person()])
        ctx.visibility = lambda: False
        driver = MonitorDriver(ctx, DriverConfig())

        assert asyncio.run(driver.tick()) == []
        assert ctx.latest_snapshot.person_count == 2
        assert ctx.policy.count == 0

    def test_overlapping_tick_is_skipped(self):
        ctx, backend, _ = _make_ctx([person(), person()])
        driver = MonitorDriver(ctx, DriverConfig())
        asyncio.run(ctx.session.initialize())

        async def scenario():
            return await asyncio.gather(driver.tick(), driver.tick())

        first, second = asyncio.run(scenario())
        assert len(first) == 1
        assert second == []
        assert driver.stats.skipped_ticks == 1
        assert backend.calls == 1

    def test_retries_initialize_on_later_tick(self):
        attempts = []
        backend = FakeBackend([person(), person()])

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("download interrupted")
            return backend

        ctx, _, _ = _make_ctx(factory=factory)
        driver = MonitorDriver(ctx, DriverConfig())

        assert asyncio.run(driver.tick()) == []
        assert ctx.system_stats["detector_state"] == "failed"
        assert ctx.latest_snapshot is None

        alerts = asyncio.run(driver.tick())
        assert [a.kind for a in alerts] == [ViolationKind.MULTIPLE_PERSONS]
        assert ctx.system_stats["detector_state"] == "ready"
        assert len(attempts) == 2


class TestRun:
    def test_run_until_terminated(self):
        source = FakeSource()
        ctx, _, _ = _make_ctx([person(), person()], max_violations=3, source=source)
        driver = MonitorDriver(ctx, DriverConfig(interval_s=0.0))

        asyncio.run(driver.run())

        assert source.opened and source.closed
        assert ctx.policy.terminated
        assert driver.stats.tick_count == 3
        assert not driver.running
        assert [a for a, _ in ctx.notifier.sent][-1] == TERMINATION_MESSAGE

    def test_stop_ends_loop(self):
        source = FakeSource()
        ctx, _, _ = _make_ctx([person()], source=source)
        driver = MonitorDriver(ctx, DriverConfig(interval_s=0.0))

        async def scenario():
            task = asyncio.ensure_future(driver.run())
            while driver.stats.tick_count < 2:
                await asyncio.sleep(0)
            driver.stop()
            await task

        asyncio.run(scenario())
        assert source.closed
        assert not ctx.policy.terminated
        assert driver.stats.tick_count >= 2
