from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .base import Sensor

logger = logging.getLogger(__name__)

IIO_ROOT = Path("/sys/bus/iio/devices")


def find_als_device(root: Optional[Path] = None) -> Optional[Path]:
    """Return the first IIO device exposing an illuminance channel."""
    root = root or IIO_ROOT
    for pattern in ("*/in_illuminance_raw", "*/in_illuminance_input"):
        matches = sorted(root.glob(pattern))
        if matches:
            return matches[0].parent
    return None


class IIOLuxSensor(Sensor):
    """Linux industrial-I/O ambient light sensor (laptop ALS)."""

    def __init__(self, device_path: Optional[Path] = None, sensor_id: str = "lux_iio"):
        path = device_path or find_als_device()
        self._path = Path(path) if path is not None else None
        self._sensor_id = sensor_id
        if self._path is None:
            logger.error("No ambient light sensor found under %s", IIO_ROOT)
        else:
            logger.info("IIO ambient light sensor at %s", self._path)

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def _read_float(self, name: str, default: Optional[float] = None) -> float:
        try:
            return float((self._path / name).read_text().strip())
        except (FileNotFoundError, ValueError):
            if default is None:
                raise
            return default

    def read(self) -> float:
        if self._path is None:
            raise RuntimeError(f"No ambient light sensor found under {IIO_ROOT}")

        # Some drivers expose processed lux directly
        if (self._path / "in_illuminance_input").exists():
            return self._read_float("in_illuminance_input")

        raw = self._read_float("in_illuminance_raw")
        scale = self._read_float("in_illuminance_scale", 1.0)
        offset = self._read_float("in_illuminance_offset", 0.0)
        return (raw + offset) * scale
