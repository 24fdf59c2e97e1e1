"""
Shared pytest fixtures for the Process Change Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test app context, DB reset and fresh SQL store (autouse)
    - client: Flask test client (function-scoped)
    - store_backend: parametrizes a test over the "sql" and "memory" stores
    - engineer / other_engineer / supervisor / admin: Actor fixtures
    - headers_for: builds gateway actor headers for API calls
"""

import pytest

from process_tracker import create_app
from process_tracker.auth import Actor, Role
from process_tracker.models import db as _db
from process_tracker.store import get_store, init_store

ENGINEER_ID = 1
OTHER_ENGINEER_ID = 2
SUPERVISOR_ID = 10
ADMIN_ID = 99


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, start on an empty SQL store, clean up after."""
    with app.app_context():
        init_store(app, "sql")
        yield
        _db.session.rollback()
        get_store().clear()
        _db.drop_all()
        _db.create_all()
        init_store(app, "sql")


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture(params=["sql", "memory"])
def store_backend(request, app, session):
    """Run the test once per store backend."""
    return init_store(app, request.param)


# ── Actors ───────────────────────────────────────────────────────────────


@pytest.fixture()
def engineer():
    return Actor(id=ENGINEER_ID, role=Role.ENGINEER)


@pytest.fixture()
def other_engineer():
    return Actor(id=OTHER_ENGINEER_ID, role=Role.ENGINEER)


@pytest.fixture()
def supervisor():
    return Actor(id=SUPERVISOR_ID, role=Role.SUPERVISOR)


@pytest.fixture()
def admin():
    return Actor(id=ADMIN_ID, role=Role.ADMIN)


def actor_headers(actor_id, role):
    return {"X-Actor-Id": str(actor_id), "X-Actor-Role": role}


@pytest.fixture()
def headers_for():
    """``headers_for("ENGINEER")`` → headers of the default actor for that role."""
    ids = {"ENGINEER": ENGINEER_ID, "SUPERVISOR": SUPERVISOR_ID, "ADMIN": ADMIN_ID}

    def _build(role, actor_id=None):
        return actor_headers(actor_id if actor_id is not None else ids[role], role)

    return _build
