from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from ..core.timeutil import now_local
from .gate import CommitGate
from .interfaces import AmbientLightSource, AppearancePrimitive, Clock, Scheduler
from .models import NO_READING, Appearance, CommitDecision, PendingCommit
from .preferences import Preferences

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    last_observed_value: Optional[float] = None
    candidate_appearance: Optional[Appearance] = None
    pending_commit: Optional[PendingCommit] = None
    last_decision: Optional[CommitDecision] = None


class AppearanceEngine:
    """Turns ambient light samples into at most one pending appearance change.

    Samples closer than the smoothing constant to the last one acted on are
    dropped. Going dark happens below ``darkness_threshold``; going back to
    light requires the value to clear the threshold plus the extra margin.
    A change is only committed after ``settle_delay_seconds`` without the
    candidate changing, and then only if the commit gate allows it.

    Not thread-safe: every method must run on the same event loop as the
    scheduler's callbacks.
    """

    def __init__(
        self,
        preferences: Preferences,
        source: AmbientLightSource,
        appearance: AppearancePrimitive,
        gate: CommitGate,
        scheduler: Scheduler,
        clock: Optional[Clock] = None,
    ) -> None:
        self._prefs = preferences
        self._source = source
        self._appearance = appearance
        self._gate = gate
        self._scheduler = scheduler
        self._clock = clock or (lambda: now_local(preferences.values.timezone))
        self.state = EngineState()

    @property
    def candidate_appearance(self) -> Optional[Appearance]:
        return self.state.candidate_appearance

    @property
    def pending_commit(self) -> Optional[PendingCommit]:
        return self.state.pending_commit

    def in_time_override(self) -> bool:
        return self._prefs.time_override().is_active(self._clock())

    # --- inputs ---

    def on_sample(self, value: float) -> None:
        if value == NO_READING or not math.isfinite(value):
            return

        last = self.state.last_observed_value
        if last is not None and abs(value - last) <= self._prefs.values.ambient_light_smoothing_constant:
            logger.debug("on_sample: %.2f within smoothing of %.2f, ignored", value, last)
            return

        logger.debug("on_sample: %.2f", value)
        self.state.last_observed_value = value
        self._evaluate(value)

    def on_config_changed(self, field: str) -> None:
        logger.info("%s changed, discarding candidate %s", field, self.state.candidate_appearance)
        self.state.candidate_appearance = None
        self._cancel_pending()

        if self.state.last_observed_value is not None:
            self._evaluate(self.state.last_observed_value)

    def accepts_wake(self) -> bool:
        if not self._prefs.values.is_wake_immediate_change_enabled:
            return False

        if self.in_time_override():
            logger.debug("Skipping wake appearance change due to time-based override")
            return False
        return True

    def on_wake(self, value: Optional[float] = None) -> Optional[CommitDecision]:
        """Commit straight through the gate, skipping debounce and settle delay.

        ``value`` is a fresh reading taken by the caller. Without one the
        source is read here, which blocks for as long as the sensor does.
        """
        if not self.accepts_wake():
            return None

        prefs = self._prefs.values
        if value is None:
            value = self._source.update()
        logger.debug("on_wake: %.2f", value)
        if value == NO_READING:
            return None

        target = Appearance.DARK if value < prefs.darkness_threshold else Appearance.LIGHT
        decision = self._gate.commit(target)
        self.state.last_decision = decision
        return decision

    def shutdown(self) -> None:
        self._cancel_pending()

    # --- internals ---

    def _evaluate(self, value: float) -> None:
        if self.in_time_override():
            logger.debug("Skipping appearance evaluation due to time-based override")
            return

        prefs = self._prefs.values
        # Real drivers shell out here, bounded by their subprocess timeout
        current = self._appearance.get_current_appearance()

        if value < prefs.darkness_threshold:
            target = Appearance.DARK
        else:
            if current == Appearance.DARK:
                revert_above = prefs.darkness_threshold + prefs.extra_threshold_before_reverting_to_light_mode
                if not value > revert_above:
                    logger.debug("evaluate: %.2f not above %.2f, staying dark", value, revert_above)
                    return
            target = Appearance.LIGHT

        if target == self.state.candidate_appearance:
            return
        self.state.candidate_appearance = target

        self._cancel_pending()

        if target == current:
            return

        logger.debug("New candidate appearance is %s", target)
        self._schedule(target, prefs.settle_delay_seconds)

    def _schedule(self, target: Appearance, delay: float) -> None:
        pending = PendingCommit(target=target, due_local=self._clock() + timedelta(seconds=delay))
        self.state.pending_commit = pending
        pending.handle = self._scheduler.call_later(delay, self._on_settled, pending)

        logger.info(
            "Scheduled appearance change to %s for %s, if conditions remain favorable (interval = %.2f)",
            target, pending.due_local.isoformat(timespec="seconds"), delay,
        )

    def _on_settled(self, pending: PendingCommit) -> None:
        if pending.cancelled or pending is not self.state.pending_commit:
            logger.debug("Ignoring stale appearance change to %s", pending.target)
            return

        self.state.pending_commit = None
        self.state.last_decision = self._gate.commit(pending.target)

    def _cancel_pending(self) -> None:
        pending = self.state.pending_commit
        if pending is None:
            return

        pending.cancel()
        self.state.pending_commit = None
        logger.debug("Cancelled scheduled appearance change to %s", pending.target)
