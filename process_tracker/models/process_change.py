"""
Process Change Tracker
Process change domain model.

Models:
    - ProcessChange: a proposed change to a manufacturing process area,
      moving through PROPOSED → OPEN → SUBMITTED → ACCEPTED / REJECTED.

Derived values (age of change) are not stored unless explicitly supplied;
see process_tracker.services.derived_fields.
"""

from datetime import datetime, timezone

from process_tracker.models import db


# ── Constants ────────────────────────────────────────────────────────────────

PROPOSED = "PROPOSED"
OPEN = "OPEN"
SUBMITTED = "SUBMITTED"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"

# Ordered as the workflow progresses
PROCESS_STATUSES = (PROPOSED, OPEN, SUBMITTED, ACCEPTED, REJECTED)

PROCESS_AREAS = ("METALS", "ETCH", "PLATING", "SAW", "GRIND", "PHOTO", "DIFFUSION", "OTHER")

REQUIRED_FIELDS = ("title", "process_area", "reason", "change_overview")

# Fields a caller may supply on create / update
EDITABLE_FIELDS = frozenset({
    "status",
    "title",
    "process_area",
    "proposal_date",
    "target_date",
    "acceptance_date",
    "age_of_change",
    "reason",
    "change_overview",
    "general_comments",
    "attachments",
    "spec_updated",
})

# Set by the system, never by a caller
IMMUTABLE_FIELDS = frozenset({"id", "change_owner", "created_at", "updated_at"})


def _utcnow():
    return datetime.now(timezone.utc)


class ProcessChange(db.Model):
    """
    A process change record.

    ``age_override`` holds an explicitly supplied age of change; when NULL
    the age is computed from ``proposal_date`` on every read.
    """

    __tablename__ = "process_changes"

    id = db.Column(db.Integer, primary_key=True)
    status = db.Column(db.String(20), nullable=False, default=PROPOSED, index=True)
    title = db.Column(db.String(300), nullable=False)
    process_area = db.Column(db.String(20), nullable=False, index=True)
    change_owner = db.Column(db.Integer, nullable=False, index=True, comment="Actor id of the creator")
    proposal_date = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    target_date = db.Column(db.DateTime(timezone=True), nullable=True)
    acceptance_date = db.Column(db.DateTime(timezone=True), nullable=True)
    age_override = db.Column(db.Integer, nullable=True, comment="Explicit age of change in days")
    reason = db.Column(db.Text, nullable=False, default="")
    change_overview = db.Column(db.Text, nullable=False, default="")
    general_comments = db.Column(db.Text, nullable=False, default="")
    attachments = db.Column(db.JSON, nullable=False, default=list, comment="Ordered file references")
    spec_updated = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def to_record(self) -> dict:
        """Plain-dict form shared with the in-memory store."""
        return {
            "id": self.id,
            "status": self.status,
            "title": self.title,
            "process_area": self.process_area,
            "change_owner": self.change_owner,
            "proposal_date": _aware(self.proposal_date),
            "target_date": _aware(self.target_date),
            "acceptance_date": _aware(self.acceptance_date),
            "age_override": self.age_override,
            "reason": self.reason or "",
            "change_overview": self.change_overview or "",
            "general_comments": self.general_comments or "",
            "attachments": list(self.attachments or []),
            "spec_updated": bool(self.spec_updated),
            "created_at": _aware(self.created_at),
            "updated_at": _aware(self.updated_at),
        }

    def __repr__(self):
        return f"<ProcessChange {self.id} {self.status} {self.title!r}>"


def _aware(value):
    # SQLite drops tzinfo on DateTime(timezone=True) columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
