"""
Transition Validator Tests: the role-keyed status state machine.

Covers:
  - Every (role, ownership, current, requested) combination against the table
  - No-op transitions
  - Owner who is also a supervisor
  - Unknown target status
  - Available transitions in workflow order
"""

import itertools

import pytest

from process_tracker.auth import Actor, Role
from process_tracker.core.exceptions import InvalidTransitionError
from process_tracker.models.process_change import PROCESS_STATUSES
from process_tracker.services.transition_validator import (
    check_transition,
    get_available_transitions,
    validate_transition,
)

OWNER_ID = 1


def _change(status):
    return {"id": 7, "status": status, "change_owner": OWNER_ID}


def _actor(role, *, owner):
    return Actor(id=OWNER_ID if owner else 500, role=role)


# Expected allowed targets per (role, is_owner, current); no-op handled separately
_EXPECTED = {
    (Role.ENGINEER, True): {"OPEN": {"SUBMITTED"}},
    (Role.ENGINEER, False): {},
    (Role.SUPERVISOR, False): {"PROPOSED": {"OPEN"}, "SUBMITTED": {"ACCEPTED", "REJECTED"}},
    (Role.SUPERVISOR, True): {
        "PROPOSED": {"OPEN"},
        "OPEN": {"SUBMITTED"},
        "SUBMITTED": {"ACCEPTED", "REJECTED"},
    },
}

_CASES = [
    (role, owner, current, requested)
    for (role, owner) in _EXPECTED
    for current, requested in itertools.product(PROCESS_STATUSES, PROCESS_STATUSES)
]


# ═══════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════


class TestTransitionTable:

    @pytest.mark.parametrize("role,owner,current,requested", _CASES)
    def test_table_determines_outcome(self, role, owner, current, requested):
        expected = requested == current or requested in _EXPECTED[(role, owner)].get(current, set())
        result = validate_transition(_actor(role, owner=owner), _change(current), requested)
        assert result["valid"] is expected
        assert result["from"] == current
        assert result["to"] == requested

    @pytest.mark.parametrize("current,requested",
                             list(itertools.product(PROCESS_STATUSES, PROCESS_STATUSES)))
    def test_admin_bypasses_table(self, current, requested):
        admin = Actor(id=99, role=Role.ADMIN)
        assert validate_transition(admin, _change(current), requested)["valid"] is True

    def test_engineer_cannot_skip_to_accepted(self):
        result = validate_transition(_actor(Role.ENGINEER, owner=True), _change("OPEN"), "ACCEPTED")
        assert result["valid"] is False
        assert "OPEN" in result["reason"]

    def test_non_owner_engineer_reason(self):
        result = validate_transition(_actor(Role.ENGINEER, owner=False), _change("OPEN"), "SUBMITTED")
        assert result["valid"] is False
        assert "owner" in result["reason"]

    def test_terminal_reason(self):
        result = validate_transition(_actor(Role.SUPERVISOR, owner=False), _change("REJECTED"), "OPEN")
        assert result["valid"] is False
        assert "terminal" in result["reason"]


# ═══════════════════════════════════════════════════════════════════════════
# Edge cases
# ═══════════════════════════════════════════════════════════════════════════


class TestTransitionEdgeCases:

    @pytest.mark.parametrize("status", PROCESS_STATUSES)
    def test_noop_is_valid_for_non_owner_engineer(self, status):
        result = validate_transition(_actor(Role.ENGINEER, owner=False), _change(status), status)
        assert result["valid"] is True
        assert result["noop"] is True

    def test_unknown_status_is_invalid(self):
        result = validate_transition(Actor(id=99, role=Role.ADMIN), _change("OPEN"), "ARCHIVED")
        assert result["valid"] is False
        assert "Unknown status" in result["reason"]

    def test_check_transition_raises(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            check_transition(_actor(Role.ENGINEER, owner=True), _change("OPEN"), "ACCEPTED")
        assert exc_info.value.current_status == "OPEN"
        assert exc_info.value.requested_status == "ACCEPTED"
        assert exc_info.value.change_id == 7

    def test_check_transition_returns_result_when_valid(self):
        result = check_transition(_actor(Role.SUPERVISOR, owner=False), _change("PROPOSED"), "OPEN")
        assert result["valid"] is True


# ═══════════════════════════════════════════════════════════════════════════
# Available transitions
# ═══════════════════════════════════════════════════════════════════════════


class TestAvailableTransitions:

    def test_supervisor_on_submitted(self):
        actor = _actor(Role.SUPERVISOR, owner=False)
        assert get_available_transitions(actor, _change("SUBMITTED")) == ["ACCEPTED", "REJECTED"]

    def test_owner_on_open(self):
        actor = _actor(Role.ENGINEER, owner=True)
        assert get_available_transitions(actor, _change("OPEN")) == ["SUBMITTED"]

    def test_terminal_has_none(self):
        actor = _actor(Role.SUPERVISOR, owner=True)
        assert get_available_transitions(actor, _change("ACCEPTED")) == []

    def test_admin_gets_every_other_status_in_order(self):
        admin = Actor(id=99, role=Role.ADMIN)
        assert get_available_transitions(admin, _change("REJECTED")) == [
            "PROPOSED", "OPEN", "SUBMITTED", "ACCEPTED",
        ]
