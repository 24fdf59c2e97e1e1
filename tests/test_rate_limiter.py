"""
Rate limiter tests: buckets are keyed by actor, with remote IP as fallback.
"""

from flask import Flask, g, jsonify
from flask_limiter import Limiter

from process_tracker.auth import Actor, Role, init_auth
from process_tracker.middleware.rate_limiter import rate_limit_key


def _limited_app():
    """Tiny app with a 2/minute limit; the limiter is hooked in before actor resolution."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    Limiter(key_func=rate_limit_key, app=app, default_limits=["2 per minute"],
            storage_uri="memory://")
    init_auth(app)

    @app.route("/api/v1/ping")
    def ping():
        return jsonify({"ok": True})

    return app


def _actor(actor_id):
    return {"X-Actor-Id": str(actor_id), "X-Actor-Role": "ENGINEER"}


class TestRateLimitKey:

    def test_resolved_actor(self):
        app = Flask(__name__)
        with app.test_request_context("/api/v1/changes"):
            g.actor = Actor(id=7, role=Role.SUPERVISOR)
            assert rate_limit_key() == "actor:7"

    def test_headers_used_before_resolution(self):
        app = Flask(__name__)
        with app.test_request_context("/api/v1/changes", headers=_actor(5)):
            assert getattr(g, "actor", None) is None
            assert rate_limit_key() == "actor:5"

    def test_anonymous_falls_back_to_ip(self):
        app = Flask(__name__)
        with app.test_request_context("/api/v1/changes",
                                      environ_base={"REMOTE_ADDR": "10.0.0.9"}):
            assert rate_limit_key() == "10.0.0.9"


class TestActorBuckets:

    def test_actors_behind_same_ip_have_separate_buckets(self):
        client = _limited_app().test_client()

        assert client.get("/api/v1/ping", headers=_actor(1)).status_code == 200
        assert client.get("/api/v1/ping", headers=_actor(1)).status_code == 200
        assert client.get("/api/v1/ping", headers=_actor(1)).status_code == 429

        assert client.get("/api/v1/ping", headers=_actor(2)).status_code == 200
        assert client.get("/api/v1/ping", headers=_actor(2)).status_code == 200
