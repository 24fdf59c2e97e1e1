"""
Derived fields for process changes.

age_of_change:
    ceil(|now - proposal_date| in days). The same formula serves the
    creation default and every read. An explicitly supplied value is
    stored as an override and returned instead.

acceptance_date:
    Set once, when a change enters ACCEPTED. Never cleared and never
    overwritten by a later ACCEPTED episode unless a value is supplied
    explicitly.
"""

import math
from datetime import datetime, timezone

from process_tracker.core.exceptions import ValidationError
from process_tracker.models.process_change import ACCEPTED

_SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def calculate_age_of_change(proposal_date: datetime | None, now: datetime | None = None) -> int:
    """Days since proposal, rounded up. 0 when no proposal date is known."""
    if proposal_date is None:
        return 0
    now = now or utcnow()
    seconds = abs((now - proposal_date).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def resolve_age_of_change(record: dict, now: datetime | None = None) -> int:
    override = record.get("age_override")
    if override is not None:
        return override
    return calculate_age_of_change(record.get("proposal_date"), now)


def resolve_acceptance_date(
    current: dict,
    new_status: str,
    explicit: datetime | None = None,
    *,
    explicit_supplied: bool = False,
    now: datetime | None = None,
) -> datetime | None:
    """
    Compute the acceptance date after a mutation.

    Args:
        current: The stored record before the mutation.
        new_status: Status after the mutation.
        explicit: Caller-supplied acceptance date, if any.
        explicit_supplied: True when the caller sent the field at all
            (distinguishes an explicit None from "not supplied").
        now: Clock for the automatic value.

    Raises:
        ValidationError: on attempts to clear the date, or to set it on a
            change that is not (and never was) accepted.
    """
    existing = current.get("acceptance_date")

    if explicit_supplied:
        if explicit is None:
            if existing is not None:
                raise ValidationError(
                    "acceptance_date cannot be cleared once set",
                    details={"acceptance_date": "cannot be cleared"},
                )
            if new_status == ACCEPTED:
                return now or utcnow()
            return None
        if new_status != ACCEPTED and existing is None:
            raise ValidationError(
                "acceptance_date can only be set on an accepted change",
                details={"acceptance_date": "change is not accepted"},
            )
        return explicit

    if new_status == ACCEPTED and existing is None:
        return now or utcnow()
    return existing
