from __future__ import annotations
import asyncio
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SuspendDetector:
    """Reports a system wake when the wall clock jumps ahead of the loop clock.

    The event loop runs on a monotonic clock that stops during suspend, so a
    tick that comes back with much more wall time elapsed than expected means
    the machine was asleep.
    """

    def __init__(
        self,
        on_wake: Callable[[], None],
        interval_s: float = 5.0,
        tolerance_s: float = 10.0,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self._on_wake = on_wake
        self._interval = interval_s
        self._tolerance = tolerance_s
        self._wall_clock = wall_clock

        self._task: Optional[asyncio.Task] = None
        self._stop = asyncio.Event()

    async def start(self) -> None:
        self._stop.clear()
        self._task = asyncio.create_task(self._run(), name="suspend_detector")

    async def stop(self) -> None:
        self._stop.set()
        if self._task:
            await self._task
            self._task = None

    def check(self, expected_wall: float) -> float:
        """Compare wall time against the expected tick. Returns the next expected tick."""
        now = self._wall_clock()
        overshoot = now - expected_wall
        if overshoot > self._tolerance:
            logger.info("Wall clock jumped %.0fs, assuming system wake", overshoot)
            self._on_wake()
        return now + self._interval

    async def _run(self) -> None:
        expected = self._wall_clock() + self._interval
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass
            if not self._stop.is_set():
                expected = self.check(expected)
