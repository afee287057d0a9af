from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

from ..domain.engine import AppearanceEngine
from ..domain.gate import CommitGate
from ..domain.interfaces import AppearancePrimitive, Clock, LidState
from ..domain.models import NO_READING, SensorFrequency
from ..domain.preferences import RESET_KEYS, Preferences
from .reader import AmbientLightReader

logger = logging.getLogger(__name__)


# --- Inbox messages ---

@dataclass(frozen=True)
class Sample:
    value: float


@dataclass(frozen=True)
class ConfigChanged:
    key: str


@dataclass(frozen=True)
class Wake:
    pass


@dataclass(frozen=True)
class TimerExpired:
    callback: Callable[..., Any]
    args: tuple


_STOP = object()


class InboxScheduler:
    """Timers that fire by posting into the inbox instead of calling back directly."""

    def __init__(self, post: Callable[[Any], None]) -> None:
        self._post = post

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self._post, TimerExpired(callback, args))


@dataclass
class LiveState:
    ambient_light_value: Optional[float]
    sensor_ready: bool
    pipeline_active: bool
    appearance: str
    candidate_appearance: Optional[str]
    pending_target: Optional[str]
    pending_due_local: Optional[datetime]
    time_override_active: bool
    auto_mode_enabled: bool
    last_decision: Optional[str]
    last_reason: Optional[str]


class AppearanceService:
    """Runs the engine on one task fed by a single inbox.

    Sensor changes, preference changes, settle timers and wake events all
    arrive as messages, so engine state is only ever touched by one handler
    at a time.
    """

    def __init__(
        self,
        preferences: Preferences,
        reader: AmbientLightReader,
        appearance: AppearancePrimitive,
        lid: LidState,
        frequency: SensorFrequency = SensorFrequency.FAST,
        clock: Optional[Clock] = None,
    ) -> None:
        self._prefs = preferences
        self._reader = reader
        self._appearance = appearance
        self._frequency = frequency

        self._inbox: asyncio.Queue = asyncio.Queue()
        self.gate = CommitGate(appearance, lid, preferences)
        self.engine = AppearanceEngine(
            preferences, reader, appearance, self.gate, InboxScheduler(self._post), clock
        )

        self._task: Optional[asyncio.Task] = None
        self._unsubscribers: list[Callable[[], None]] = []
        self._wake_handle: Optional[asyncio.TimerHandle] = None
        self.pipeline_active = False

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._reader.update)
        if not self._reader.is_sensor_ready:
            logger.error("Ambient light sensor unavailable, automatic appearance switching disabled")
            return

        self._task = asyncio.create_task(self._run(), name="appearance_inbox")
        self._unsubscribers.append(self._reader.subscribe(self._on_reading))
        for key in RESET_KEYS:
            self._unsubscribers.append(self._prefs.subscribe(key, self._on_preference_changed))

        # The first value was read before subscribing
        self._post(Sample(self._reader.ambient_light_value))
        self._reader.activate(self._frequency)
        self.pipeline_active = True

    async def stop(self) -> None:
        if self._wake_handle:
            self._wake_handle.cancel()
            self._wake_handle = None

        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

        if self._task:
            self._post(_STOP)
            await self._task
            self._task = None

        self.engine.shutdown()
        await self._reader.stop()
        self.pipeline_active = False

    def notify_wake(self) -> None:
        """System woke up. The engine sees it after ``wake_settle_seconds``."""
        if not self.pipeline_active:
            return
        if self._wake_handle:
            self._wake_handle.cancel()
        delay = self._prefs.values.wake_settle_seconds
        self._wake_handle = asyncio.get_running_loop().call_later(delay, self._post, Wake())
        logger.info("Wake received, re-evaluating in %.1fs", delay)

    def snapshot(self) -> LiveState:
        value = self._reader.ambient_light_value
        pending = self.engine.pending_commit
        candidate = self.engine.candidate_appearance
        decision = self.engine.state.last_decision
        return LiveState(
            ambient_light_value=None if value == NO_READING else value,
            sensor_ready=self._reader.is_sensor_ready,
            pipeline_active=self.pipeline_active,
            appearance=str(self._appearance.get_current_appearance()),
            candidate_appearance=str(candidate) if candidate else None,
            pending_target=str(pending.target) if pending else None,
            pending_due_local=pending.due_local if pending else None,
            time_override_active=self.engine.in_time_override(),
            auto_mode_enabled=self._prefs.values.is_auto_mode_enabled,
            last_decision=decision.action if decision else None,
            last_reason=decision.reason if decision else None,
        )

    def _post(self, message: Any) -> None:
        self._inbox.put_nowait(message)

    def _on_reading(self, value: float) -> None:
        self._post(Sample(value))

    def _on_preference_changed(self, key: str) -> None:
        self._post(ConfigChanged(key))

    async def _run(self) -> None:
        logger.info("Appearance inbox started (frequency=%s)", self._frequency.name.lower())

        while True:
            message = await self._inbox.get()
            if message is _STOP:
                break
            try:
                if isinstance(message, Wake):
                    await self._handle_wake()
                else:
                    self._dispatch(message)
            except Exception as e:
                logger.exception("Appearance inbox error: %s", e)

        logger.info("Appearance inbox stopped")

    async def _handle_wake(self) -> None:
        self._wake_handle = None
        if not self.engine.accepts_wake():
            return

        # Modbus reads can block for the whole serial timeout
        value = await asyncio.get_running_loop().run_in_executor(None, self._reader.update)
        self.engine.on_wake(value)

    def _dispatch(self, message: Any) -> None:
        if isinstance(message, Sample):
            self.engine.on_sample(message.value)
        elif isinstance(message, ConfigChanged):
            self.engine.on_config_changed(message.key)
        elif isinstance(message, TimerExpired):
            message.callback(*message.args)
        else:
            logger.warning("Unknown inbox message: %r", message)
