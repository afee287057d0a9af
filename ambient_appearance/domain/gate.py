from __future__ import annotations
import logging

from .interfaces import AppearancePrimitive, LidState
from .models import Appearance, CommitDecision
from .preferences import Preferences

logger = logging.getLogger(__name__)


class CommitGate:
    """Veto checks run right before the system appearance is changed.

    Holds no state of its own. Vetoes are expected steady conditions, so they
    are logged at debug level and reported through the returned decision,
    never raised.
    """

    def __init__(
        self,
        appearance: AppearancePrimitive,
        lid: LidState,
        preferences: Preferences,
    ) -> None:
        self._appearance = appearance
        self._lid = lid
        self._prefs = preferences

    def evaluate(self, target: Appearance) -> CommitDecision:
        if target == self._appearance.get_current_appearance():
            return CommitDecision("NOOP", f"Already {target}", target)

        prefs = self._prefs.values
        if prefs.is_clamshell_veto_enabled and self._lid.is_lid_closed():
            return CommitDecision("VETO", "Lid closed", target)

        if not prefs.is_auto_mode_enabled:
            return CommitDecision("VETO", "Automatic appearance change disabled", target)

        return CommitDecision("APPLY", f"Changing appearance to {target}", target)

    def commit(self, target: Appearance) -> CommitDecision:
        decision = self.evaluate(target)
        if not decision.applied:
            logger.debug("commit %s skipped: %s", target, decision.reason)
            return decision

        logger.info("commit: %s", decision.reason)
        self._appearance.set_appearance(target)
        return decision
