from __future__ import annotations

from abc import ABC, abstractmethod


class Sensor(ABC):
    """Raw ambient light sensor. Blocking, one value per call."""

    @property
    @abstractmethod
    def sensor_id(self) -> str:
        ...

    @property
    def unit(self) -> str:
        return "lux"

    @abstractmethod
    def read(self) -> float:
        """Return the current illuminance. Raise on failure."""
        ...

    def close(self) -> None:
        """Release any hardware handle."""
