from __future__ import annotations

import math
import random
import time
from dataclasses import asdict, dataclass
from threading import Lock

from .base import Sensor


@dataclass
class PatternConfig:
    type: str = "sine"     # sine|step|ramp|random|flicker
    baseline: float = 60.0
    amplitude: float = 40.0
    period_s: float = 600.0
    noise: float = 1.0

    # flicker: short spikes away from baseline, e.g. someone walking past
    spike_every_s: float = 30.0
    spike_length_s: float = 2.0


class SimulatedLuxSensor(Sensor):
    """Lux source for development. read() is called from an executor thread."""

    def __init__(self, sensor_id: str = "lux_sim", manual_lux: float = 100.0):
        self._sensor_id = sensor_id
        self._lock = Lock()
        self._enabled = True
        self._mode = "manual"   # manual|pattern
        self._manual_lux = float(manual_lux)
        self._pattern = PatternConfig()

    @property
    def sensor_id(self) -> str:
        return self._sensor_id

    def enable(self) -> None:
        with self._lock:
            self._enabled = True

    def disable(self) -> None:
        with self._lock:
            self._enabled = False

    def set_manual(self, lux: float) -> None:
        with self._lock:
            self._mode = "manual"
            self._manual_lux = float(lux)

    def set_pattern(self, cfg: PatternConfig) -> None:
        with self._lock:
            self._mode = "pattern"
            self._pattern = cfg

    def status(self) -> dict:
        with self._lock:
            return {
                "enabled": self._enabled,
                "mode": self._mode,
                "manual_lux": self._manual_lux,
                "pattern": asdict(self._pattern),
            }

    def read(self) -> float:
        with self._lock:
            if not self._enabled:
                raise RuntimeError("Simulated sensor disabled")
            if self._mode == "manual":
                return self._manual_lux
            cfg = self._pattern

        v = pattern_value(cfg, time.time())
        if cfg.noise > 0:
            v += random.uniform(-cfg.noise, cfg.noise)
        return max(0.0, v)


def pattern_value(cfg: PatternConfig, t: float) -> float:
    """Noise-free pattern value at wall time ``t``."""
    period = max(cfg.period_s, 1.0)
    frac = (t % period) / period

    if cfg.type == "sine":
        return cfg.baseline + cfg.amplitude * math.sin(frac * 2.0 * math.pi)
    if cfg.type == "step":
        return cfg.baseline + (cfg.amplitude if frac < 0.5 else -cfg.amplitude)
    if cfg.type == "ramp":
        return cfg.baseline - cfg.amplitude + 2.0 * cfg.amplitude * frac
    if cfg.type == "random":
        return cfg.baseline + random.uniform(-cfg.amplitude, cfg.amplitude)
    if cfg.type == "flicker":
        in_spike = (t % max(cfg.spike_every_s, 1.0)) < cfg.spike_length_s
        return cfg.baseline - cfg.amplitude if in_spike else cfg.baseline
    return cfg.baseline
