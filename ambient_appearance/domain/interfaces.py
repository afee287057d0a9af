from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Protocol, runtime_checkable
from .models import Appearance, SensorFrequency


@runtime_checkable
class AmbientLightSource(Protocol):
    ambient_light_value: float

    @property
    def is_sensor_ready(self) -> bool:
        ...

    def activate(self, frequency: SensorFrequency) -> None:
        ...

    def update(self) -> float:
        ...

    def subscribe(self, callback: Callable[[float], None]) -> Callable[[], None]:
        ...

    def invalidate(self) -> None:
        ...


@runtime_checkable
class AppearancePrimitive(Protocol):
    def get_current_appearance(self) -> Appearance:
        ...

    def set_appearance(self, appearance: Appearance) -> None:
        ...


@runtime_checkable
class LidState(Protocol):
    def is_lid_closed(self) -> bool:
        ...


class Scheduler(Protocol):
    """Anything with ``call_later`` returning a cancellable handle, e.g. an asyncio loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Any:
        ...


Clock = Callable[[], datetime]
