from __future__ import annotations
import logging
from collections import defaultdict
from datetime import time
from typing import Any, Callable, Mapping

from ..core.config import Settings
from .schedule import TimeOverrideWindow

logger = logging.getLogger(__name__)

# Keys that may change while running. Everything else in Settings needs a restart.
PREFERENCE_KEYS = frozenset({
    "darkness_threshold",
    "extra_threshold_before_reverting_to_light_mode",
    "ambient_light_smoothing_constant",
    "settle_delay_seconds",
    "is_auto_mode_enabled",
    "is_clamshell_veto_enabled",
    "is_wake_immediate_change_enabled",
    "time_override_enabled",
    "time_override_start",
    "time_override_end",
    "wake_settle_seconds",
})

# Changing these invalidates any candidate computed under the old values.
RESET_KEYS = ("darkness_threshold", "settle_delay_seconds")

Listener = Callable[[str], None]


class Preferences:
    """Live, observable view over Settings.

    Values are read on demand through ``values``. ``update`` validates the
    whole batch before applying anything, then notifies subscribers of the
    keys whose value actually changed.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    @property
    def values(self) -> Settings:
        return self._settings

    def time_override(self) -> TimeOverrideWindow:
        s = self._settings
        return TimeOverrideWindow.from_times(
            s.time_override_enabled, s.time_override_start, s.time_override_end
        )

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]:
        if key not in PREFERENCE_KEYS:
            raise KeyError(f"Not a runtime preference: {key}")
        self._listeners[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners[key]:
                self._listeners[key].remove(callback)

        return unsubscribe

    def update(self, updates: Mapping[str, Any]) -> list[str]:
        """Apply a batch of changes. Returns the keys that changed.

        Raises KeyError for unknown keys and pydantic.ValidationError for bad
        values; in both cases nothing is applied.
        """
        for key in updates:
            if key not in PREFERENCE_KEYS:
                raise KeyError(f"Not a runtime preference: {key}")

        candidate = self._settings.model_copy()
        for key, value in updates.items():
            setattr(candidate, key, value)

        changed: list[str] = []
        for key in updates:
            new_value = getattr(candidate, key)
            if getattr(self._settings, key) != new_value:
                setattr(self._settings, key, new_value)
                changed.append(key)

        for key in changed:
            logger.info("Preference %s = %r", key, getattr(self._settings, key))
            self._notify(key)
        return changed

    def load_persisted(self, stored: Mapping[str, Any]) -> list[str]:
        """Apply stored overrides at startup, skipping keys no longer known."""
        known = {k: v for k, v in stored.items() if k in PREFERENCE_KEYS}
        for key in set(stored) - set(known):
            logger.warning("Ignoring unknown stored preference: %s", key)
        return self.update(known)

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key in sorted(PREFERENCE_KEYS):
            value = getattr(self._settings, key)
            out[key] = value.strftime("%H:%M") if isinstance(value, time) else value
        return out

    def _notify(self, key: str) -> None:
        for callback in list(self._listeners[key]):
            try:
                callback(key)
            except Exception:
                logger.exception("Preference listener for %s failed", key)
