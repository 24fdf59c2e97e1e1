"""
Process Change service layer.

Every operation takes the acting Actor explicitly; nothing reads a
process-wide current user.

Mutation pipeline (update_change):
    1. load the record                        → NotFoundError
    2. reject unknown / system-managed fields → ValidationError
    3. access policy                          → PermissionDenied
    4. transition validator (status only)     → InvalidTransitionError
    5. value validation                       → ValidationError
    6. derived fields (acceptance date)
    7. store.update (refreshes updated_at)
    8. notifications (never fail the call)

Steps 1-6 run before the store is written, so a failed mutation leaves
the record untouched. The logic is identical for every store backend.

Usage:
    from process_tracker.services import process_change_service as svc

    change = svc.create_change(actor, {"title": ..., "process_area": "ETCH", ...})
    svc.update_change(actor, change["id"], {"status": "OPEN"})
"""

import logging
from datetime import datetime, timedelta

from flask import current_app

from process_tracker.auth import Actor
from process_tracker.core.exceptions import NotFoundError, PermissionDenied, ValidationError
from process_tracker.models.process_change import (
    EDITABLE_FIELDS,
    IMMUTABLE_FIELDS,
    PROCESS_AREAS,
    PROCESS_STATUSES,
    PROPOSED,
    REQUIRED_FIELDS,
)
from process_tracker.services import access_policy, transition_validator
from process_tracker.services.derived_fields import (
    resolve_acceptance_date,
    resolve_age_of_change,
    utcnow,
)
from process_tracker.services.notification import NotificationService
from process_tracker.store import get_store
from process_tracker.utils.helpers import normalize_attachments, parse_datetime

logger = logging.getLogger(__name__)

_RESOURCE = "ProcessChange"

_TEXT_FIELDS = ("title", "reason", "change_overview")

# Set by the workflow, never accepted on create
_CREATE_IGNORED = frozenset({"status", "acceptance_date"})


# ── Helpers ──────────────────────────────────────────────────────────────────


def _present(record: dict, now: datetime | None = None) -> dict:
    """Public form of a stored record: age resolved, override hidden."""
    out = dict(record)
    out["age_of_change"] = resolve_age_of_change(record, now)
    out.pop("age_override", None)
    out["attachments"] = list(record.get("attachments") or [])
    return out


def _load(change_id) -> dict:
    record = get_store().get_by_id(change_id)
    if record is None:
        raise NotFoundError(_RESOURCE, change_id)
    return record


def _clean_fields(fields: dict) -> dict:
    """
    Validate and normalise caller-supplied values (status excluded).

    Returns a dict keyed by record field; ``age_of_change`` is mapped to
    ``age_override``. Collects every problem before raising.
    """
    cleaned: dict = {}
    errors: dict = {}

    for key in _TEXT_FIELDS:
        if key in fields:
            val = fields[key]
            if not isinstance(val, str) or not val.strip():
                errors[key] = "must be a non-empty string"
            else:
                cleaned[key] = val.strip() if key == "title" else val

    if "process_area" in fields:
        area = fields["process_area"]
        if area not in PROCESS_AREAS:
            errors["process_area"] = f"must be one of: {', '.join(PROCESS_AREAS)}"
        else:
            cleaned["process_area"] = area

    for key in ("proposal_date", "target_date", "acceptance_date"):
        if key in fields:
            try:
                cleaned[key] = parse_datetime(fields[key])
            except ValueError as exc:
                errors[key] = str(exc)
    if "proposal_date" in cleaned and cleaned["proposal_date"] is None:
        errors["proposal_date"] = "cannot be empty"

    if "age_of_change" in fields:
        age = fields["age_of_change"]
        if age is None:
            cleaned["age_override"] = None
        elif isinstance(age, bool) or not isinstance(age, int) or age < 0:
            errors["age_of_change"] = "must be a non-negative integer"
        else:
            cleaned["age_override"] = age

    if "general_comments" in fields:
        comments = fields["general_comments"]
        if comments is not None and not isinstance(comments, str):
            errors["general_comments"] = "must be a string"
        else:
            cleaned["general_comments"] = comments or ""

    if "attachments" in fields:
        try:
            cleaned["attachments"] = normalize_attachments(fields["attachments"])
        except ValueError as exc:
            errors["attachments"] = str(exc)

    if "spec_updated" in fields:
        if not isinstance(fields["spec_updated"], bool):
            errors["spec_updated"] = "must be a boolean"
        else:
            cleaned["spec_updated"] = fields["spec_updated"]

    if errors:
        raise ValidationError(
            f"Invalid fields: {', '.join(sorted(errors))}", details=errors,
        )
    return cleaned


def _check_field_names(fields: dict) -> None:
    immutable = sorted(set(fields) & IMMUTABLE_FIELDS)
    unknown = sorted(set(fields) - EDITABLE_FIELDS - IMMUTABLE_FIELDS)
    details = {name: "cannot be modified" for name in immutable}
    details.update({name: "unknown field" for name in unknown})
    if details:
        raise ValidationError(
            f"Fields not accepted: {', '.join(sorted(details))}", details=details,
        )


# ── Create ───────────────────────────────────────────────────────────────────


def create_change(actor: Actor, data: dict, *, now: datetime | None = None) -> dict:
    """
    Create a change owned by ``actor``, always in PROPOSED.

    Required: title, process_area, reason, change_overview.
    Defaults: proposal_date=now, target_date=now + DEFAULT_TARGET_DAYS.

    Raises:
        ValidationError: missing or malformed fields.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    now = now or utcnow()

    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )

    ignored = sorted(k for k in data if k not in EDITABLE_FIELDS or k in _CREATE_IGNORED)
    if ignored:
        logger.debug("create_change ignoring caller-supplied fields: %s", ignored)
    cleaned = _clean_fields(
        {k: v for k, v in data.items() if k in EDITABLE_FIELDS and k not in _CREATE_IGNORED}
    )

    target_days = current_app.config.get("DEFAULT_TARGET_DAYS", 30)
    record = {
        "status": PROPOSED,
        "title": cleaned["title"],
        "process_area": cleaned["process_area"],
        "change_owner": actor.id,
        "proposal_date": cleaned.get("proposal_date") or now,
        "target_date": cleaned.get("target_date") or now + timedelta(days=target_days),
        "acceptance_date": None,
        "age_override": cleaned.get("age_override"),
        "reason": cleaned["reason"],
        "change_overview": cleaned["change_overview"],
        "general_comments": cleaned.get("general_comments", ""),
        "attachments": cleaned.get("attachments", []),
        "spec_updated": cleaned.get("spec_updated", False),
    }

    created = get_store().create(record, now=now)
    logger.info("Change %s created by actor %s (%s)",
                created["id"], actor.id, created["process_area"],
                extra={"change_id": created["id"], "actor_id": actor.id})
    NotificationService.notify_new_change(created)
    return _present(created, now)


# ── Read ─────────────────────────────────────────────────────────────────────


def get_change(actor: Actor, change_id: int, *, now: datetime | None = None) -> dict:
    """Return one change. Raises NotFoundError, PermissionDenied."""
    record = _load(change_id)
    if not access_policy.can_read(actor, record):
        raise PermissionDenied(getattr(actor, "id", None), f"read change {change_id}",
                               "an authenticated actor is required")
    return _present(record, now)


def list_changes(
    actor: Actor,
    *,
    status: str | None = None,
    process_area: str | None = None,
    change_owner: int | None = None,
    now: datetime | None = None,
) -> list[dict]:
    """Filtered changes, most recently updated first."""
    errors = {}
    if status and status not in PROCESS_STATUSES:
        errors["status"] = f"must be one of: {', '.join(PROCESS_STATUSES)}"
    if process_area and process_area not in PROCESS_AREAS:
        errors["process_area"] = f"must be one of: {', '.join(PROCESS_AREAS)}"
    if errors:
        raise ValidationError("Invalid filter", details=errors)

    now = now or utcnow()
    records = get_store().list(
        status=status or None,
        process_area=process_area or None,
        change_owner=change_owner,
    )
    return [_present(r, now) for r in records]


# ── Update ───────────────────────────────────────────────────────────────────


def update_change(actor: Actor, change_id: int, fields: dict, *,
                  now: datetime | None = None) -> dict:
    """
    Apply a partial update on behalf of ``actor``.

    Raises:
        NotFoundError, ValidationError, PermissionDenied, InvalidTransitionError
    """
    if not isinstance(fields, dict):
        raise ValidationError("Request body must be a JSON object")
    now = now or utcnow()

    current = _load(change_id)
    _check_field_names(fields)
    access_policy.check_write(actor, current, fields.keys())

    previous_status = current["status"]
    new_status = previous_status
    if "status" in fields:
        requested = fields["status"]
        transition_validator.check_transition(actor, current, requested)
        new_status = requested

    changes = _clean_fields({k: v for k, v in fields.items() if k != "status"})
    explicit_supplied = "acceptance_date" in changes
    acceptance_date = resolve_acceptance_date(
        current,
        new_status,
        changes.pop("acceptance_date", None),
        explicit_supplied=explicit_supplied,
        now=now,
    )
    if acceptance_date != current.get("acceptance_date"):
        changes["acceptance_date"] = acceptance_date
    if new_status != previous_status:
        changes["status"] = new_status

    updated = get_store().update(change_id, changes, now=now)
    if updated is None:
        raise NotFoundError(_RESOURCE, change_id)

    if new_status != previous_status:
        logger.info("Change %s status %s -> %s by actor %s (%s)",
                    change_id, previous_status, new_status, actor.id, actor.role.value,
                    extra={"change_id": change_id, "actor_id": actor.id})
        NotificationService.notify_status_change(updated, previous_status)
    else:
        logger.info("Change %s updated by actor %s: %s",
                    change_id, actor.id, sorted(changes),
                    extra={"change_id": change_id, "actor_id": actor.id})
    return _present(updated, now)


# ── Delete ───────────────────────────────────────────────────────────────────


def delete_change(actor: Actor, change_id: int) -> bool:
    """
    Hard-delete a change. Owner or ADMIN only, at any status.

    Returns:
        True if deleted, False if the id does not exist.

    Raises:
        PermissionDenied
    """
    store = get_store()
    current = store.get_by_id(change_id)
    if current is None:
        logger.info("Delete of unknown change %s by actor %s", change_id, actor.id)
        return False
    access_policy.check_delete(actor, current)
    deleted = store.delete(change_id)
    if deleted:
        logger.info("Change %s deleted by actor %s", change_id, actor.id,
                    extra={"change_id": change_id, "actor_id": actor.id})
    return deleted


# ── Workflow helpers ─────────────────────────────────────────────────────────


def available_transitions(actor: Actor, change_id: int) -> dict:
    """Statuses ``actor`` may move the change to right now."""
    current = _load(change_id)
    return {
        "id": current["id"],
        "current": current["status"],
        "available": transition_validator.get_available_transitions(actor, current),
    }


def summarize(actor: Actor) -> dict:
    """Dashboard counts per status and per process area (zeros included)."""
    store = get_store()
    by_status = store.count_by("status")
    by_area = store.count_by("process_area")
    return {
        "total": sum(by_status.values()),
        "by_status": {s: by_status.get(s, 0) for s in PROCESS_STATUSES},
        "by_process_area": {a: by_area.get(a, 0) for a in PROCESS_AREAS},
    }
