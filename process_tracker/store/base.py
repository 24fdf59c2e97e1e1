"""
Process change storage interface.

Backends persist plain-dict records and know nothing about actors,
permissions or transitions; process_change_service is their only caller.

Record keys:
    id, status, title, process_area, change_owner, proposal_date,
    target_date, acceptance_date, age_override, reason, change_overview,
    general_comments, attachments, spec_updated, created_at, updated_at
"""

from abc import ABC, abstractmethod
from datetime import datetime

RECORD_FIELDS = (
    "status",
    "title",
    "process_area",
    "change_owner",
    "proposal_date",
    "target_date",
    "acceptance_date",
    "age_override",
    "reason",
    "change_overview",
    "general_comments",
    "attachments",
    "spec_updated",
)


class ProcessChangeStore(ABC):
    """Storage contract shared by the SQL and in-memory backends."""

    name = "abstract"

    @abstractmethod
    def create(self, data: dict, *, now: datetime | None = None) -> dict:
        """Insert a record; assigns id, created_at and updated_at."""

    @abstractmethod
    def get_by_id(self, change_id: int) -> dict | None:
        """Return the record or None."""

    @abstractmethod
    def list(self, *, status=None, process_area=None, change_owner=None) -> list[dict]:
        """Filtered records, most recently updated first (ties: highest id first)."""

    @abstractmethod
    def update(self, change_id: int, fields: dict, *, now: datetime | None = None) -> dict | None:
        """Merge ``fields`` into the record and refresh updated_at; None if missing."""

    @abstractmethod
    def delete(self, change_id: int) -> bool:
        """Hard delete. False when the id does not exist."""

    @abstractmethod
    def count_by(self, field: str) -> dict:
        """Number of records per distinct value of ``field``."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every record."""

    def ping(self) -> bool:
        """Cheap liveness check used by the health endpoint."""
        return True


def sort_key(record: dict):
    return (record["updated_at"], record["id"])
