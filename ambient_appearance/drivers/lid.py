from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class SimulatedLid:
    def __init__(self, closed: bool = False) -> None:
        self.closed = closed

    def is_lid_closed(self) -> bool:
        return self.closed


class AcpiLid:
    """Linux laptops: /proc/acpi/button/lid/*/state reads "state:      closed"."""

    def __init__(self, root: Path = Path("/proc/acpi/button/lid")) -> None:
        self._root = root

    def is_lid_closed(self) -> bool:
        for state_file in sorted(self._root.glob("*/state")):
            try:
                text = state_file.read_text()
            except OSError:
                logger.warning("Unable to read %s", state_file, exc_info=True)
                continue
            if "closed" in text:
                return True
        # No lid (desktop) counts as open
        return False


_CLAMSHELL_RE = re.compile(r'"AppleClamshellState"\s*=\s*(Yes|No)')


class MacLid:
    def __init__(self, timeout: float = 5.0) -> None:
        self._timeout = timeout

    def is_lid_closed(self) -> bool:
        try:
            result = subprocess.run(
                ["ioreg", "-r", "-k", "AppleClamshellState", "-d", "4"],
                capture_output=True, text=True, check=True, timeout=self._timeout,
            )
        except (OSError, subprocess.SubprocessError):
            logger.warning("ioreg clamshell query failed, assuming open", exc_info=True)
            return False
        match = _CLAMSHELL_RE.search(result.stdout)
        return bool(match and match.group(1) == "Yes")
