"""
Process Change Tracker
Actor identity & authentication middleware.

Provides:
    - Role: ENGINEER < SUPERVISOR < ADMIN, with a total order
    - Actor: the authenticated caller passed into every service call
    - Header-based actor resolution for /api/v1/* requests

Security model:
    Identity provisioning lives outside this application. An upstream
    gateway authenticates the user and forwards:

        X-Actor-Id       : integer actor id (required)
        X-Actor-Role     : ENGINEER | SUPERVISOR | ADMIN (required)
        X-Actor-Identity : opaque identity reference (optional)

    Requests without a valid actor get 401. The resolved actor is stored on
    ``g.actor`` for the transport layer only; services receive it as an
    explicit argument.
"""

import functools
import logging
from dataclasses import dataclass
from enum import Enum

from flask import g, jsonify, request

logger = logging.getLogger(__name__)


# ── Roles ────────────────────────────────────────────────────────────────────

class Role(str, Enum):
    ENGINEER = "ENGINEER"
    SUPERVISOR = "SUPERVISOR"
    ADMIN = "ADMIN"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]

    @classmethod
    def parse(cls, value):
        """Return the Role for a case-insensitive name, or None."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


# Coarse "at least this role" checks only; transition rights are separate
_ROLE_RANK = {
    Role.ENGINEER: 1,
    Role.SUPERVISOR: 2,
    Role.ADMIN: 3,
}


def has_role(role: Role, required: Role) -> bool:
    """True if ``role`` ranks at or above ``required``."""
    return role.rank >= required.rank


@dataclass(frozen=True)
class Actor:
    """Authenticated caller."""

    id: int
    role: Role
    identity: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    def owns(self, change: dict) -> bool:
        return change.get("change_owner") == self.id


# ── Request resolution ───────────────────────────────────────────────────────

# Paths that do not require an actor
_PUBLIC_PREFIXES = ("/api/v1/health",)


def actor_from_headers(headers) -> Actor | None:
    """Build an Actor from gateway headers; None if absent or malformed."""
    raw_id = (headers.get("X-Actor-Id") or "").strip()
    raw_role = headers.get("X-Actor-Role") or ""
    if not raw_id or not raw_role:
        return None
    try:
        actor_id = int(raw_id)
    except ValueError:
        return None
    role = Role.parse(raw_role)
    if role is None:
        return None
    identity = (headers.get("X-Actor-Identity") or "").strip() or None
    return Actor(id=actor_id, role=role, identity=identity)


def current_actor() -> Actor | None:
    """Actor resolved for the current request (transport layer only)."""
    return getattr(g, "actor", None)


def require_actor(f):
    """Decorator: reject the request with 401 unless an actor was resolved."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if current_actor() is None:
            return jsonify({
                "error": "Authentication required. Provide X-Actor-Id and X-Actor-Role headers.",
                "code": "ERR_UNAUTHENTICATED",
            }), 401
        return f(*args, **kwargs)
    return decorated


def _check_content_type():
    """
    For state-changing requests require Content-Type: application/json.
    HTML forms cannot send it, which doubles as lightweight CSRF mitigation.
    """
    if request.method in ("POST", "PUT", "PATCH"):
        ct = request.content_type or ""
        if "application/json" not in ct and request.content_length:
            return jsonify({
                "error": "Content-Type must be application/json for state-changing requests"
            }), 415
    return None


def init_auth(app):
    """
    Install actor resolution on the Flask app.

    Every /api/v1/* request outside the public prefixes gets ``g.actor``
    (or None); endpoints decorated with ``require_actor`` enforce it.
    """
    @app.before_request
    def _resolve_actor():
        g.actor = None
        if not request.path.startswith("/api/v1/"):
            return None
        if request.path.startswith(_PUBLIC_PREFIXES):
            return None
        if request.method == "OPTIONS":
            return None

        ct_error = _check_content_type()
        if ct_error:
            return ct_error

        g.actor = actor_from_headers(request.headers)
        if g.actor is None and request.headers.get("X-Actor-Id"):
            logger.warning("Rejected malformed actor headers on %s %s", request.method, request.path)
        return None

    logger.info("Actor resolution middleware installed")
