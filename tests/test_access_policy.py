"""
Access Policy Tests: who may edit or delete a process change, and which fields.
"""

import pytest

from process_tracker.auth import Actor, Role, actor_from_headers, has_role
from process_tracker.core.exceptions import PermissionDenied
from process_tracker.services import access_policy

OWNER_ID = 1
CHANGE = {"id": 3, "status": "SUBMITTED", "change_owner": OWNER_ID}


class TestCanWrite:

    def test_admin_any_field(self):
        admin = Actor(id=99, role=Role.ADMIN)
        assert access_policy.can_write(admin, CHANGE, {"title", "reason", "status"})

    def test_owner_any_field(self):
        owner = Actor(id=OWNER_ID, role=Role.ENGINEER)
        assert access_policy.can_write(owner, CHANGE, {"title", "attachments", "spec_updated"})

    def test_non_owner_engineer_denied(self):
        other = Actor(id=2, role=Role.ENGINEER)
        decision = access_policy.can_write(other, CHANGE, {"general_comments"})
        assert not decision
        assert "owner" in decision.reason

    def test_supervisor_limited_fields_allowed(self):
        sup = Actor(id=10, role=Role.SUPERVISOR)
        assert access_policy.can_write(sup, CHANGE, {"status", "general_comments", "acceptance_date"})

    def test_supervisor_extra_field_rejects_whole_request(self):
        sup = Actor(id=10, role=Role.SUPERVISOR)
        decision = access_policy.can_write(sup, CHANGE, {"status", "title", "reason"})
        assert not decision
        assert decision.rejected_fields == ("reason", "title")

    def test_supervisor_owner_unrestricted(self):
        sup = Actor(id=OWNER_ID, role=Role.SUPERVISOR)
        assert access_policy.can_write(sup, CHANGE, {"title"})

    def test_check_write_raises_with_fields(self):
        sup = Actor(id=10, role=Role.SUPERVISOR)
        with pytest.raises(PermissionDenied) as exc_info:
            access_policy.check_write(sup, CHANGE, ["title"])
        assert exc_info.value.fields == ["title"]
        assert exc_info.value.actor_id == 10


class TestCanDelete:

    @pytest.mark.parametrize("actor,expected", [
        (Actor(id=OWNER_ID, role=Role.ENGINEER), True),
        (Actor(id=99, role=Role.ADMIN), True),
        (Actor(id=10, role=Role.SUPERVISOR), False),
        (Actor(id=2, role=Role.ENGINEER), False),
    ])
    def test_delete_rights(self, actor, expected):
        assert access_policy.can_delete(actor, CHANGE) is expected

    def test_check_delete_raises(self):
        with pytest.raises(PermissionDenied):
            access_policy.check_delete(Actor(id=10, role=Role.SUPERVISOR), CHANGE)

    def test_any_actor_can_read(self):
        assert access_policy.can_read(Actor(id=2, role=Role.ENGINEER), CHANGE)


class TestRoles:

    def test_total_order(self):
        assert Role.ENGINEER.rank < Role.SUPERVISOR.rank < Role.ADMIN.rank

    def test_has_role(self):
        assert has_role(Role.ADMIN, Role.SUPERVISOR)
        assert has_role(Role.SUPERVISOR, Role.SUPERVISOR)
        assert not has_role(Role.ENGINEER, Role.SUPERVISOR)

    def test_parse_is_case_insensitive(self):
        assert Role.parse("supervisor") is Role.SUPERVISOR
        assert Role.parse("manager") is None

    def test_actor_from_headers(self):
        actor = actor_from_headers({"X-Actor-Id": "5", "X-Actor-Role": "admin",
                                    "X-Actor-Identity": "user_abc"})
        assert actor == Actor(id=5, role=Role.ADMIN, identity="user_abc")

    @pytest.mark.parametrize("headers", [
        {},
        {"X-Actor-Id": "5"},
        {"X-Actor-Id": "abc", "X-Actor-Role": "ADMIN"},
        {"X-Actor-Id": "5", "X-Actor-Role": "OWNER"},
    ])
    def test_actor_from_bad_headers(self, headers):
        assert actor_from_headers(headers) is None
