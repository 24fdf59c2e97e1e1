"""
Rate limiting configuration.

The Limiter instance is created in process_tracker/__init__.py with no
default limits; this module applies limits per route category, keyed by
the calling actor when one is known and by remote IP otherwise.

Usage:
    from process_tracker.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

from process_tracker.auth import actor_from_headers

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def rate_limit_key():
    """Dynamic rate limit key: actor id if resolved, else remote IP.

    Falls back to the actor headers when the limiter runs before
    ``g.actor`` has been set for the request.
    """
    actor = getattr(g, "actor", None) or actor_from_headers(flask_request.headers)
    if actor is not None:
        return f"actor:{actor.id}"
    return flask_request.remote_addr or "unknown"


def _is_read():
    return flask_request.method in ("GET", "HEAD", "OPTIONS")


def _is_write():
    return not _is_read()


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per actor, falling back to remote IP):
        - Write endpoints:  60/minute  (POST/PATCH/DELETE)
        - Read endpoints:   200/minute
        - Health checks:    exempt

    Rate limiting is disabled in testing mode or when RATELIMIT_ENABLED
    is False.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    bp = app.blueprints.get("process_change")
    if bp:
        limiter.limit(WRITE_LIMIT, key_func=rate_limit_key, exempt_when=_is_read)(bp)
        limiter.limit(READ_LIMIT, key_func=rate_limit_key, exempt_when=_is_write)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured (write=%s, read=%s)", WRITE_LIMIT, READ_LIMIT)
