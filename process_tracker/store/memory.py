"""In-memory process change store.

Used for demos and tests that should not touch a database. Records live in
a dict guarded by a lock; callers always receive deep copies so nothing
outside the store can mutate stored state.
"""

import copy
import logging
import threading
from collections import Counter
from datetime import datetime, timezone

from process_tracker.store.base import RECORD_FIELDS, ProcessChangeStore, sort_key

logger = logging.getLogger(__name__)


class InMemoryProcessChangeStore(ProcessChangeStore):
    name = "memory"

    def __init__(self):
        self._records: dict[int, dict] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, data, *, now=None):
        now = now or datetime.now(timezone.utc)
        with self._lock:
            record = {key: copy.deepcopy(data.get(key)) for key in RECORD_FIELDS}
            record["attachments"] = record["attachments"] or []
            record["id"] = self._next_id
            record["created_at"] = data.get("created_at") or now
            record["updated_at"] = data.get("updated_at") or now
            self._records[record["id"]] = record
            self._next_id += 1
            return copy.deepcopy(record)

    def get_by_id(self, change_id):
        with self._lock:
            record = self._records.get(change_id)
            return copy.deepcopy(record) if record else None

    def list(self, *, status=None, process_area=None, change_owner=None):
        with self._lock:
            result = list(self._records.values())
            if status:
                result = [r for r in result if r["status"] == status]
            if process_area:
                result = [r for r in result if r["process_area"] == process_area]
            if change_owner is not None:
                result = [r for r in result if r["change_owner"] == change_owner]
            result.sort(key=sort_key, reverse=True)
            return copy.deepcopy(result)

    def update(self, change_id, fields, *, now=None):
        now = now or datetime.now(timezone.utc)
        with self._lock:
            record = self._records.get(change_id)
            if record is None:
                return None
            for key, val in fields.items():
                if key in RECORD_FIELDS:
                    record[key] = copy.deepcopy(val)
            record["updated_at"] = now
            return copy.deepcopy(record)

    def delete(self, change_id):
        with self._lock:
            return self._records.pop(change_id, None) is not None

    def count_by(self, field):
        with self._lock:
            return dict(Counter(r[field] for r in self._records.values()))

    def clear(self):
        with self._lock:
            self._records.clear()
            self._next_id = 1
        logger.debug("In-memory change store cleared")
