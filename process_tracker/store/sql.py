"""Relational process change store (Flask-SQLAlchemy).

Each operation is its own transaction: commit on success, rollback and
re-raise on any SQLAlchemy error so a failed mutation never half-applies.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from process_tracker.models import db
from process_tracker.models.process_change import ProcessChange
from process_tracker.store.base import RECORD_FIELDS, ProcessChangeStore

logger = logging.getLogger(__name__)


class SqlProcessChangeStore(ProcessChangeStore):
    name = "sql"

    def create(self, data, *, now=None):
        now = now or datetime.now(timezone.utc)
        row = ProcessChange(**{key: data.get(key) for key in RECORD_FIELDS})
        row.attachments = list(data.get("attachments") or [])
        row.created_at = data.get("created_at") or now
        row.updated_at = data.get("updated_at") or now
        db.session.add(row)
        self._commit("create")
        return row.to_record()

    def get_by_id(self, change_id):
        row = db.session.get(ProcessChange, change_id)
        return row.to_record() if row else None

    def list(self, *, status=None, process_area=None, change_owner=None):
        stmt = select(ProcessChange)
        if status:
            stmt = stmt.where(ProcessChange.status == status)
        if process_area:
            stmt = stmt.where(ProcessChange.process_area == process_area)
        if change_owner is not None:
            stmt = stmt.where(ProcessChange.change_owner == change_owner)
        stmt = stmt.order_by(ProcessChange.updated_at.desc(), ProcessChange.id.desc())
        return [row.to_record() for row in db.session.execute(stmt).scalars()]

    def update(self, change_id, fields, *, now=None):
        row = db.session.get(ProcessChange, change_id)
        if row is None:
            return None
        for key, val in fields.items():
            if key == "attachments":
                row.attachments = list(val or [])
            elif key in RECORD_FIELDS:
                setattr(row, key, val)
        row.updated_at = now or datetime.now(timezone.utc)
        self._commit("update")
        return row.to_record()

    def delete(self, change_id):
        row = db.session.get(ProcessChange, change_id)
        if row is None:
            return False
        db.session.delete(row)
        self._commit("delete")
        return True

    def count_by(self, field):
        column = getattr(ProcessChange, field)
        stmt = select(column, func.count(ProcessChange.id)).group_by(column)
        return {value: count for value, count in db.session.execute(stmt).all()}

    def clear(self):
        db.session.execute(ProcessChange.__table__.delete())
        self._commit("clear")

    def ping(self):
        db.session.execute(db.text("SELECT 1"))
        return True

    @staticmethod
    def _commit(operation):
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Database error during change store %s", operation)
            raise
