"""
Process Change: Status Transition Validator

Role-keyed state machine over ProcessChange.status:

    current     owner          SUPERVISOR               ADMIN
    PROPOSED    -              OPEN                     any
    OPEN        SUBMITTED      -                        any
    SUBMITTED   -              ACCEPTED, REJECTED       any
    ACCEPTED    terminal       terminal                 any
    REJECTED    terminal       terminal                 any

Rules:
  - requested == current is a no-op and always valid
  - owner and supervisor rights are disjoint; an owner who is also a
    supervisor holds both sets
  - a non-owner ENGINEER never changes status
  - ADMIN bypasses the table

Usage:
    from process_tracker.services.transition_validator import check_transition

    check_transition(actor, change, "SUBMITTED")   # raises InvalidTransitionError
"""

from process_tracker.auth import Actor, Role
from process_tracker.core.exceptions import InvalidTransitionError
from process_tracker.models.process_change import (
    ACCEPTED,
    OPEN,
    PROCESS_STATUSES,
    PROPOSED,
    REJECTED,
    SUBMITTED,
)


OWNER_TRANSITIONS = {
    OPEN: {SUBMITTED},
}

SUPERVISOR_TRANSITIONS = {
    PROPOSED: {OPEN},
    SUBMITTED: {ACCEPTED, REJECTED},
}

TERMINAL_STATUSES = frozenset({ACCEPTED, REJECTED})


def allowed_targets(actor: Actor, change: dict) -> set[str]:
    """Statuses the actor may move the change to (excluding the no-op)."""
    current = change["status"]
    if actor.is_admin:
        return set(PROCESS_STATUSES) - {current}

    targets: set[str] = set()
    if actor.owns(change):
        targets |= OWNER_TRANSITIONS.get(current, set())
    if actor.role is Role.SUPERVISOR:
        targets |= SUPERVISOR_TRANSITIONS.get(current, set())
    return targets


def validate_transition(actor: Actor, change: dict, requested: str) -> dict:
    """
    Validate whether the actor may move the change to ``requested``.

    Returns:
        {"valid": bool, "from": str, "to": str, "noop": bool, "reason": str|None}
    """
    current = change["status"]
    result = {"valid": True, "from": current, "to": requested, "noop": False, "reason": None}

    if requested not in PROCESS_STATUSES:
        result.update(valid=False, reason=f"Unknown status: {requested}")
        return result

    if requested == current:
        result["noop"] = True
        return result

    if requested in allowed_targets(actor, change):
        return result

    if actor.role is Role.ENGINEER and not actor.owns(change):
        reason = "only the owner of the change can update its status"
    elif current in TERMINAL_STATUSES:
        reason = f"{current} is terminal"
    else:
        reason = f"{actor.role.value} may not move a change from {current} to {requested}"
    result.update(valid=False, reason=reason)
    return result


def check_transition(actor: Actor, change: dict, requested: str) -> dict:
    """Raise InvalidTransitionError unless ``validate_transition`` passes."""
    validation = validate_transition(actor, change, requested)
    if not validation["valid"]:
        raise InvalidTransitionError(
            change.get("id"), validation["from"], requested, validation["reason"],
        )
    return validation


def get_available_transitions(actor: Actor, change: dict) -> list[str]:
    """Allowed target statuses in workflow order."""
    targets = allowed_targets(actor, change)
    return [status for status in PROCESS_STATUSES if status in targets]
