"""Shared fakes and fixtures for the appearance engine tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable

import pytest

from ambient_appearance.core.config import Settings
from ambient_appearance.domain.engine import AppearanceEngine
from ambient_appearance.domain.gate import CommitGate
from ambient_appearance.domain.models import NO_READING, Appearance, SensorFrequency
from ambient_appearance.domain.preferences import Preferences
from ambient_appearance.drivers.appearance import SimulatedAppearance
from ambient_appearance.drivers.lid import SimulatedLid


class FakeHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock. Timers only fire from advance()."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((h for h in self.active if h.when <= target), key=lambda h: h.when)
            if not due:
                break
            handle = due[0]
            self.now = handle.when
            handle.fired = True
            handle.callback(*handle.args)
        self.now = target

    def advance_to(self, t: float) -> None:
        self.advance(t - self.now)


class RecordingAppearance(SimulatedAppearance):
    def __init__(self, initial: Appearance = Appearance.LIGHT) -> None:
        super().__init__(initial)
        self.set_calls: list[Appearance] = []

    def set_appearance(self, appearance: Appearance) -> None:
        self.set_calls.append(appearance)
        super().set_appearance(appearance)


class FakeLightSource:
    """Stands in for AmbientLightReader; update() returns whatever value is set."""

    def __init__(self, value: float = NO_READING) -> None:
        self.ambient_light_value = value
        self.update_calls = 0

    @property
    def is_sensor_ready(self) -> bool:
        return self.ambient_light_value != NO_READING

    def activate(self, frequency: SensorFrequency) -> None:
        pass

    def update(self) -> float:
        self.update_calls += 1
        return self.ambient_light_value

    def subscribe(self, callback):
        return lambda: None

    def invalidate(self) -> None:
        pass


class MutableClock:
    """Wall clock that follows the fake scheduler, starting at ``start``."""

    def __init__(self, scheduler: FakeScheduler, start: datetime) -> None:
        self._scheduler = scheduler
        self.start = start

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=self._scheduler.now)


def make_settings(**overrides: Any) -> Settings:
    values = dict(
        darkness_threshold=50.0,
        extra_threshold_before_reverting_to_light_mode=10.0,
        ambient_light_smoothing_constant=3.0,
        settle_delay_seconds=5.0,
        is_auto_mode_enabled=True,
        is_clamshell_veto_enabled=True,
        is_wake_immediate_change_enabled=True,
        time_override_enabled=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def prefs() -> Preferences:
    return Preferences(make_settings())


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def clock(scheduler: FakeScheduler) -> MutableClock:
    return MutableClock(scheduler, datetime(2026, 10, 19, 12, 0, 0))


@pytest.fixture
def appearance() -> RecordingAppearance:
    return RecordingAppearance(Appearance.LIGHT)


@pytest.fixture
def lid() -> SimulatedLid:
    return SimulatedLid(closed=False)


@pytest.fixture
def source() -> FakeLightSource:
    return FakeLightSource()


@pytest.fixture
def gate(appearance: RecordingAppearance, lid: SimulatedLid, prefs: Preferences) -> CommitGate:
    return CommitGate(appearance, lid, prefs)


@pytest.fixture
def engine(
    prefs: Preferences,
    source: FakeLightSource,
    appearance: RecordingAppearance,
    gate: CommitGate,
    scheduler: FakeScheduler,
    clock: MutableClock,
) -> AppearanceEngine:
    return AppearanceEngine(prefs, source, appearance, gate, scheduler, clock)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    return make_settings
