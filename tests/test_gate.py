"""Tests for the commit gate."""

from __future__ import annotations

from ambient_appearance.domain.models import Appearance


class TestCommitGate:
    def test_applies_when_all_checks_pass(self, gate, appearance):
        decision = gate.commit(Appearance.DARK)

        assert decision.applied
        assert appearance.set_calls == [Appearance.DARK]

    def test_already_at_target(self, gate, appearance):
        decision = gate.commit(Appearance.LIGHT)

        assert decision.action == "NOOP"
        assert appearance.set_calls == []

    def test_lid_closed_vetoes(self, gate, lid, appearance):
        lid.closed = True

        decision = gate.commit(Appearance.DARK)

        assert decision.action == "VETO"
        assert decision.reason == "Lid closed"
        assert appearance.set_calls == []

    def test_lid_ignored_when_veto_disabled(self, gate, prefs, lid, appearance):
        prefs.update({"is_clamshell_veto_enabled": False})
        lid.closed = True

        assert gate.commit(Appearance.DARK).applied
        assert appearance.set_calls == [Appearance.DARK]

    def test_auto_mode_disabled_vetoes(self, gate, prefs, appearance):
        prefs.update({"is_auto_mode_enabled": False})

        decision = gate.commit(Appearance.DARK)

        assert decision.action == "VETO"
        assert appearance.set_calls == []

    def test_equality_checked_before_other_vetoes(self, gate, prefs, lid):
        prefs.update({"is_auto_mode_enabled": False})
        lid.closed = True

        assert gate.evaluate(Appearance.LIGHT).action == "NOOP"

    def test_evaluate_has_no_side_effects(self, gate, appearance):
        assert gate.evaluate(Appearance.DARK).applied
        assert appearance.set_calls == []
