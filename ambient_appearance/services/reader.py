from __future__ import annotations
import asyncio
import contextlib
import logging
from typing import Callable, Optional

from ..domain.models import NO_READING, SensorFrequency
from ..sensors.base import Sensor

logger = logging.getLogger(__name__)


class AmbientLightReader:
    """Keeps ``ambient_light_value`` current by polling a Sensor.

    Subscribers are called on the event loop whenever the value changes.
    ``ambient_light_value`` stays at NO_READING until the first good read.
    """

    def __init__(self, sensor: Sensor) -> None:
        self._sensor = sensor
        self.ambient_light_value: float = NO_READING
        self._subscribers: list[Callable[[float], None]] = []
        self._ready = False

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    @property
    def sensor(self) -> Sensor:
        return self._sensor

    @property
    def is_sensor_ready(self) -> bool:
        return self._ready

    def subscribe(self, callback: Callable[[float], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self) -> float:
        """Blocking read on the caller's thread. Returns the current value."""
        try:
            value = float(self._sensor.read())
        except Exception as e:
            logger.exception("Sensor read FAILED: %s", e)
            return self.ambient_light_value
        self._publish(value)
        return value

    def activate(self, frequency: SensorFrequency = SensorFrequency.FAST) -> None:
        if self._task is not None:
            return
        self._stop.clear()
        self._task = asyncio.get_running_loop().create_task(
            self._run(frequency), name="ambient_light_reader"
        )

    def invalidate(self) -> None:
        self._stop.set()
        self._subscribers.clear()

    async def stop(self) -> None:
        self.invalidate()
        if self._task:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        self._sensor.close()

    async def _run(self, frequency: SensorFrequency) -> None:
        logger.info(
            "Ambient light reader started (sensor=%s period=%.2fs)",
            self._sensor.sensor_id, frequency.value,
        )
        loop = asyncio.get_running_loop()

        while not self._stop.is_set():
            try:
                # Sensor reads block; keep them off the event loop
                value = await loop.run_in_executor(None, self._sensor.read)
            except Exception as e:
                logger.exception("Sensor read FAILED: %s", e)
            else:
                self._publish(float(value))

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=frequency.value)
            except asyncio.TimeoutError:
                pass

        logger.info("Ambient light reader stopped")

    def _publish(self, value: float) -> None:
        if not self._ready:
            self._ready = True
            logger.info("Ambient light sensor ready: %.2f %s", value, self._sensor.unit)

        if value == self.ambient_light_value:
            return
        self.ambient_light_value = value

        for callback in list(self._subscribers):
            try:
                callback(value)
            except Exception:
                logger.exception("Ambient light subscriber failed")
