from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, time

from ..core.timeutil import minute_of_day


@dataclass(frozen=True)
class TimeOverrideWindow:
    """Daily quiet period during which automatic switching is suppressed."""

    enabled: bool
    start_minute: int
    end_minute: int

    @classmethod
    def from_times(cls, enabled: bool, start: time, end: time) -> "TimeOverrideWindow":
        return cls(enabled=enabled, start_minute=minute_of_day(start), end_minute=minute_of_day(end))

    def matches(self, t: time) -> bool:
        m = minute_of_day(t)
        # Handle overnight windows (e.g., 22:00 -> 06:00)
        if self.start_minute <= self.end_minute:
            return self.start_minute <= m < self.end_minute
        return m >= self.start_minute or m < self.end_minute

    def is_active(self, local_dt: datetime) -> bool:
        if not self.enabled:
            return False
        return self.matches(local_dt.timetz().replace(tzinfo=None))

    @property
    def label(self) -> str:
        return "%02d:%02d-%02d:%02d" % (
            self.start_minute // 60, self.start_minute % 60,
            self.end_minute // 60, self.end_minute % 60,
        )
