"""
Change store tests: behaviour shared by the SQL and in-memory backends,
plus the registry and demo seeding.
"""

from datetime import datetime, timedelta, timezone

import pytest

from process_tracker.store import BACKENDS, init_store
from process_tracker.store.memory import InMemoryProcessChangeStore
from process_tracker.store.seed import DEMO_CHANGES, seed_demo_changes

T0 = datetime(2024, 1, 10, tzinfo=timezone.utc)


def _record(**overrides):
    record = {
        "status": "PROPOSED",
        "title": "New saw blade for wafer dicing",
        "process_area": "SAW",
        "change_owner": 1,
        "proposal_date": T0,
        "target_date": T0 + timedelta(days=30),
        "acceptance_date": None,
        "age_override": None,
        "reason": "Edge chipping.",
        "change_overview": "Switch to a 1.8mm resin-bond blade.",
        "general_comments": "",
        "attachments": [],
        "spec_updated": False,
    }
    record.update(overrides)
    return record


class TestStoreContract:

    def test_create_assigns_id_and_timestamps(self, store_backend):
        created = store_backend.create(_record(), now=T0)
        assert created["id"] == 1
        assert created["created_at"] == created["updated_at"] == T0
        assert store_backend.get_by_id(created["id"])["title"] == "New saw blade for wafer dicing"

    def test_get_missing(self, store_backend):
        assert store_backend.get_by_id(404) is None

    def test_update_merges_and_refreshes(self, store_backend):
        created = store_backend.create(_record(), now=T0)
        later = T0 + timedelta(minutes=5)
        updated = store_backend.update(created["id"], {"general_comments": "ok"}, now=later)
        assert updated["general_comments"] == "ok"
        assert updated["title"] == created["title"]
        assert updated["updated_at"] == later
        assert updated["created_at"] == T0

    def test_update_missing(self, store_backend):
        assert store_backend.update(404, {"title": "x"}) is None

    def test_attachments_order_preserved(self, store_backend):
        refs = ["/uploads/c/z.pdf", "/uploads/c/a.pdf", "/uploads/c/m.pdf"]
        created = store_backend.create(_record(attachments=refs))
        assert store_backend.get_by_id(created["id"])["attachments"] == refs

    def test_delete(self, store_backend):
        created = store_backend.create(_record())
        assert store_backend.delete(created["id"]) is True
        assert store_backend.delete(created["id"]) is False
        assert store_backend.get_by_id(created["id"]) is None

    def test_list_order_and_filters(self, store_backend):
        a = store_backend.create(_record(process_area="ETCH"), now=T0)
        b = store_backend.create(_record(status="OPEN"), now=T0 + timedelta(days=1))
        c = store_backend.create(_record(change_owner=2), now=T0)

        assert [r["id"] for r in store_backend.list()] == [b["id"], c["id"], a["id"]]
        assert [r["id"] for r in store_backend.list(status="OPEN")] == [b["id"]]
        assert [r["id"] for r in store_backend.list(process_area="ETCH")] == [a["id"]]
        assert [r["id"] for r in store_backend.list(change_owner=2)] == [c["id"]]

    def test_count_by(self, store_backend):
        store_backend.create(_record())
        store_backend.create(_record(process_area="ETCH"))
        assert store_backend.count_by("process_area") == {"SAW": 1, "ETCH": 1}

    def test_clear(self, store_backend):
        store_backend.create(_record())
        store_backend.clear()
        assert store_backend.list() == []

    def test_ping(self, store_backend):
        assert store_backend.ping() is True


class TestMemoryIsolation:

    def test_returned_records_are_copies(self):
        store = InMemoryProcessChangeStore()
        created = store.create(_record(attachments=["/uploads/a.pdf"]))
        created["attachments"].append("/uploads/evil.pdf")
        created["title"] = "mutated"
        stored = store.get_by_id(created["id"])
        assert stored["attachments"] == ["/uploads/a.pdf"]
        assert stored["title"] == "New saw blade for wafer dicing"


class TestRegistry:

    def test_backends(self):
        assert set(BACKENDS) == {"sql", "memory"}

    def test_unknown_backend(self, app):
        with pytest.raises(RuntimeError):
            init_store(app, "redis")


class TestSeed:

    def test_seed_demo_changes(self, store_backend):
        assert seed_demo_changes(store_backend, owner_id=7) == len(DEMO_CHANGES)
        records = store_backend.list()
        assert [r["title"] for r in records] == [
            "Change ETCH chemical formula",
            "Update Diffusion temperature profile",
            "New saw blade for wafer dicing",
        ]
        assert {r["change_owner"] for r in records} == {7}
        accepted = store_backend.list(status="ACCEPTED")[0]
        assert accepted["acceptance_date"] == datetime(2023, 9, 20, tzinfo=timezone.utc)

    def test_seed_skips_non_empty_store(self, store_backend):
        seed_demo_changes(store_backend)
        assert seed_demo_changes(store_backend) == 0
        assert seed_demo_changes(store_backend, force=True) == len(DEMO_CHANGES)
