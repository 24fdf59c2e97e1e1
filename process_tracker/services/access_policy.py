"""
Process Change Access Policy

Decides whether an actor may read, write or delete a process change.

Rules:
  - ADMIN: any field, any state; may delete.
  - Owner (actor.id == change_owner): any editable field; may delete.
    Status changes still go through the transition validator.
  - SUPERVISOR (non-owner): only SUPERVISOR_WRITABLE_FIELDS. A request
    carrying any other field is rejected as a whole; nothing is stripped.
  - Everyone else: denied.
  - Read: every authenticated actor.

Usage:
    from process_tracker.services.access_policy import check_write

    check_write(actor, change, {"status", "general_comments"})
"""

import logging
from dataclasses import dataclass, field

from process_tracker.auth import Actor, Role, has_role
from process_tracker.core.exceptions import PermissionDenied

logger = logging.getLogger(__name__)

SUPERVISOR_WRITABLE_FIELDS = frozenset({"status", "general_comments", "acceptance_date"})


@dataclass(frozen=True)
class WriteDecision:
    """Outcome of a write check."""

    allowed: bool
    reason: str | None = None
    rejected_fields: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.allowed


def can_read(actor: Actor, change: dict) -> bool:
    return actor is not None


def can_write(actor: Actor, change: dict, requested_fields) -> WriteDecision:
    """
    Check general write permission for a set of fields.

    Args:
        actor: The caller.
        change: Current record (plain dict).
        requested_fields: Names of the fields the request mutates.

    Returns:
        WriteDecision: truthy when allowed.
    """
    if actor.is_admin:
        return WriteDecision(True)

    if actor.owns(change):
        return WriteDecision(True)

    if has_role(actor.role, Role.SUPERVISOR):
        extra = sorted(set(requested_fields) - SUPERVISOR_WRITABLE_FIELDS)
        if extra:
            return WriteDecision(
                False,
                "supervisors may only change "
                f"{', '.join(sorted(SUPERVISOR_WRITABLE_FIELDS))} on changes they do not own",
                tuple(extra),
            )
        return WriteDecision(True)

    return WriteDecision(False, "only the owner, a supervisor or an admin may edit this change")


def check_write(actor: Actor, change: dict, requested_fields) -> None:
    """Raise PermissionDenied unless ``can_write`` allows the request."""
    decision = can_write(actor, change, requested_fields)
    if not decision:
        logger.warning(
            "Write denied: actor=%s role=%s change=%s fields=%s",
            actor.id, actor.role.value, change.get("id"), sorted(requested_fields),
        )
        raise PermissionDenied(
            actor.id, f"edit change {change.get('id')}",
            decision.reason, list(decision.rejected_fields),
        )


def can_delete(actor: Actor, change: dict) -> bool:
    """Owner or ADMIN, regardless of state."""
    return actor.is_admin or actor.owns(change)


def check_delete(actor: Actor, change: dict) -> None:
    if not can_delete(actor, change):
        logger.warning("Delete denied: actor=%s role=%s change=%s",
                       actor.id, actor.role.value, change.get("id"))
        raise PermissionDenied(
            actor.id, f"delete change {change.get('id')}",
            "only the owner or an admin may delete a change",
        )
