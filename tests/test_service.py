"""End-to-end tests for the inbox-driven appearance service."""

from __future__ import annotations

import asyncio
import threading

import pytest

from ambient_appearance.domain.models import Appearance, SensorFrequency
from ambient_appearance.domain.preferences import Preferences
from ambient_appearance.drivers.appearance import SimulatedAppearance
from ambient_appearance.drivers.lid import SimulatedLid
from ambient_appearance.sensors.simulated_lux_sensor import SimulatedLuxSensor
from ambient_appearance.services.reader import AmbientLightReader
from ambient_appearance.services.switcher import AppearanceService, InboxScheduler, TimerExpired
from ambient_appearance.services.wake import SuspendDetector


class ThreadRecordingSensor(SimulatedLuxSensor):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.read_threads: list[int] = []

    def read(self) -> float:
        self.read_threads.append(threading.get_ident())
        return super().read()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        assert loop.time() < deadline, "condition not met in time"
        await asyncio.sleep(0.02)


@pytest.fixture
def sensor() -> SimulatedLuxSensor:
    return SimulatedLuxSensor(manual_lux=100.0)


@pytest.fixture
def sim_appearance() -> SimulatedAppearance:
    return SimulatedAppearance(Appearance.LIGHT)


@pytest.fixture
def make_service(settings_factory, sensor, sim_appearance):
    def factory(**overrides) -> AppearanceService:
        prefs = Preferences(settings_factory(**overrides))
        return AppearanceService(
            prefs,
            AmbientLightReader(sensor),
            sim_appearance,
            SimulatedLid(),
            frequency=SensorFrequency.REALTIME,
        )
    return factory


class TestAppearanceService:
    async def test_commits_after_settle_delay(self, make_service, sensor, sim_appearance):
        service = make_service(settle_delay_seconds=0.05)
        await service.start()
        try:
            assert service.pipeline_active
            await wait_until(lambda: service.engine.candidate_appearance == Appearance.LIGHT)

            sensor.set_manual(10.0)
            await wait_until(lambda: sim_appearance.get_current_appearance() == Appearance.DARK)
        finally:
            await service.stop()

        assert service.engine.pending_commit is None

    async def test_threshold_change_resets_pending_commit(self, make_service, sensor):
        sensor.set_manual(10.0)
        service = make_service(settle_delay_seconds=30)
        await service.start()
        try:
            await wait_until(lambda: service.engine.pending_commit is not None)

            service._prefs.update({"darkness_threshold": 5.0})

            await wait_until(lambda: service.engine.pending_commit is None)
            assert service.engine.candidate_appearance == Appearance.LIGHT
        finally:
            await service.stop()

    async def test_wake_commits_without_settle(self, make_service, sensor, sim_appearance):
        sensor.set_manual(10.0)
        service = make_service(settle_delay_seconds=30, wake_settle_seconds=0)
        await service.start()
        try:
            await wait_until(lambda: service.engine.pending_commit is not None)

            service.notify_wake()

            await wait_until(lambda: sim_appearance.get_current_appearance() == Appearance.DARK)
            assert service.engine.state.last_decision.action == "APPLY"
        finally:
            await service.stop()

    async def test_wake_reads_sensor_off_the_event_loop(self, settings_factory, sim_appearance):
        sensor = ThreadRecordingSensor(manual_lux=10.0)
        prefs = Preferences(settings_factory(settle_delay_seconds=30, wake_settle_seconds=0))
        service = AppearanceService(
            prefs, AmbientLightReader(sensor), sim_appearance, SimulatedLid(), frequency=SensorFrequency.FAST
        )
        await service.start()
        try:
            await wait_until(lambda: service.engine.pending_commit is not None)
            reads_before = len(sensor.read_threads)

            service.notify_wake()

            await wait_until(lambda: sim_appearance.get_current_appearance() == Appearance.DARK)
        finally:
            await service.stop()

        assert len(sensor.read_threads) > reads_before
        assert threading.get_ident() not in sensor.read_threads

    async def test_missing_sensor_disables_pipeline(self, make_service, sensor, sim_appearance):
        sensor.disable()
        service = make_service(settle_delay_seconds=0)
        await service.start()

        assert not service.pipeline_active
        service.notify_wake()
        live = service.snapshot()
        assert live.sensor_ready is False
        assert live.ambient_light_value is None

        await service.stop()
        assert sim_appearance.get_current_appearance() == Appearance.LIGHT

    async def test_snapshot(self, make_service):
        service = make_service()
        await service.start()
        try:
            await wait_until(lambda: service.engine.candidate_appearance is not None)
            live = service.snapshot()
        finally:
            await service.stop()

        assert live.ambient_light_value == 100.0
        assert live.appearance == "Light"
        assert live.candidate_appearance == "Light"
        assert live.pending_target is None
        assert live.auto_mode_enabled is True


class TestInboxScheduler:
    async def test_timer_posts_into_inbox(self):
        posted = []
        scheduler = InboxScheduler(posted.append)

        scheduler.call_later(0.01, print, "x")
        await asyncio.sleep(0.05)

        assert posted == [TimerExpired(print, ("x",))]

    async def test_cancelled_timer_posts_nothing(self):
        posted = []
        scheduler = InboxScheduler(posted.append)

        handle = scheduler.call_later(0.01, print)
        handle.cancel()
        await asyncio.sleep(0.05)

        assert posted == []


class TestSuspendDetector:
    def test_clock_jump_reports_wake(self):
        wakes = []
        now = [1000.0]
        detector = SuspendDetector(lambda: wakes.append(True), interval_s=5, tolerance_s=10, wall_clock=lambda: now[0])

        now[0] = 1006.0
        expected = detector.check(1005.0)
        assert wakes == []
        assert expected == 1011.0

        now[0] = 1600.0
        detector.check(expected)
        assert wakes == [True]

    async def test_start_stop(self):
        detector = SuspendDetector(lambda: None, interval_s=0.01)

        await detector.start()
        await asyncio.sleep(0.03)
        await detector.stop()
