from __future__ import annotations

import logging
import shutil
import subprocess

from ..domain.models import Appearance

logger = logging.getLogger(__name__)


class SimulatedAppearance:
    def __init__(self, initial: Appearance = Appearance.LIGHT) -> None:
        self._appearance = initial

    def get_current_appearance(self) -> Appearance:
        return self._appearance

    def set_appearance(self, appearance: Appearance) -> None:
        self._appearance = appearance
        logger.info("APPEARANCE set=%s", appearance)


class GnomeAppearance:
    """GNOME / GTK desktops, via the color-scheme key in gsettings."""

    schema = "org.gnome.desktop.interface"
    key = "color-scheme"

    def __init__(self, timeout: float = 5.0) -> None:
        self._gsettings = shutil.which("gsettings") or "/usr/bin/gsettings"
        self._timeout = timeout
        self._last_known = Appearance.LIGHT

    def get_current_appearance(self) -> Appearance:
        try:
            result = subprocess.run(
                [self._gsettings, "get", self.schema, self.key],
                capture_output=True, text=True, check=True, timeout=self._timeout,
            )
            value = result.stdout.strip().strip("'")
            self._last_known = Appearance.DARK if value == "prefer-dark" else Appearance.LIGHT
        except (OSError, subprocess.SubprocessError):
            logger.warning(
                "gsettings get failed, returning last known appearance: %s",
                self._last_known,
                exc_info=True,
            )
        return self._last_known

    def set_appearance(self, appearance: Appearance) -> None:
        value = "prefer-dark" if appearance == Appearance.DARK else "default"
        try:
            subprocess.run(
                [self._gsettings, "set", self.schema, self.key, value],
                capture_output=True, text=True, check=True, timeout=self._timeout,
            )
            self._last_known = appearance
            logger.info("gsettings %s=%s", self.key, value)
        except (OSError, subprocess.SubprocessError):
            logger.warning("gsettings set %s=%s failed", self.key, value, exc_info=True)


class MacAppearance:
    """macOS system-wide Light/Dark appearance."""

    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout
        self._last_known = Appearance.LIGHT

    def get_current_appearance(self) -> Appearance:
        try:
            # Exits non-zero when the key is absent, which means Light
            result = subprocess.run(
                ["defaults", "read", "-g", "AppleInterfaceStyle"],
                capture_output=True, text=True, check=False, timeout=self._timeout,
            )
            is_dark = result.returncode == 0 and result.stdout.strip() == "Dark"
            self._last_known = Appearance.DARK if is_dark else Appearance.LIGHT
        except (OSError, subprocess.SubprocessError):
            logger.warning(
                "Reading AppleInterfaceStyle failed, returning last known appearance: %s",
                self._last_known,
                exc_info=True,
            )
        return self._last_known

    def set_appearance(self, appearance: Appearance) -> None:
        flag = "true" if appearance == Appearance.DARK else "false"
        script = f'tell application "System Events" to tell appearance preferences to set dark mode to {flag}'
        try:
            subprocess.run(
                ["osascript", "-e", script],
                capture_output=True, text=True, check=True, timeout=self._timeout,
            )
            self._last_known = appearance
            logger.info("macOS appearance set=%s", appearance)
        except (OSError, subprocess.SubprocessError):
            logger.warning("osascript set appearance=%s failed", appearance, exc_info=True)
