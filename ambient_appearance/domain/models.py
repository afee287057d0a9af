from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# Sensor value meaning "no reading yet"
NO_READING = -1.0


class Appearance(Enum):
    LIGHT = "light"
    DARK = "dark"

    def __str__(self) -> str:
        return self.value.capitalize()


class SensorFrequency(Enum):
    """Polling interval class, value is the period in seconds."""

    FAST = 1.0
    REALTIME = 0.1


@dataclass
class PendingCommit:
    target: Appearance
    due_local: datetime
    handle: Any = None  # scheduler handle, has .cancel()
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True
        if self.handle is not None:
            self.handle.cancel()


@dataclass(frozen=True)
class CommitDecision:
    action: str  # "APPLY" | "NOOP" | "VETO"
    reason: str
    target: Appearance

    @property
    def applied(self) -> bool:
        return self.action == "APPLY"
