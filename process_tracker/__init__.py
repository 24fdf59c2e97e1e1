"""
Process Change Tracker
Flask Application Factory.

Usage:
    from process_tracker import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from process_tracker.auth import init_auth
from process_tracker.config import config
from process_tracker.middleware.logging_config import configure_logging
from process_tracker.middleware.rate_limiter import init_rate_limits
from process_tracker.middleware.timing import init_request_timing
from process_tracker.models import db
from process_tracker.store import get_store, init_store

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per-blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    # Instantiated so ProductionConfig can refuse to start without its env vars
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Actor resolution + Content-Type guard ────────────────────────────
    init_auth(app)

    # Limiter hooks run after actor resolution so limits key by actor
    limiter.init_app(app)

    # ── Tables + change store ────────────────────────────────────────────
    from process_tracker.models import process_change as _process_change_models  # noqa: F401

    with app.app_context():
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") \
                and ":memory:" not in app.config["SQLALCHEMY_DATABASE_URI"]:
            os.makedirs(app.instance_path, exist_ok=True)
        db.create_all()
    init_store(app)

    # ── Blueprints ───────────────────────────────────────────────────────
    from process_tracker.blueprints.health_bp import health_bp
    from process_tracker.blueprints.process_change_bp import process_change_bp

    app.register_blueprint(process_change_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    @click.option("--owner-id", default=1, show_default=True, type=int,
                  help="Actor id that will own the demo changes.")
    @click.option("--force", is_flag=True, help="Seed even if changes already exist.")
    def seed_demo_cmd(owner_id, force):
        """Load the three demo process changes."""
        from process_tracker.store.seed import seed_demo_changes
        count = seed_demo_changes(get_store(), owner_id=owner_id, force=force)
        click.echo(f"Seeded {count} demo changes.")

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "code": "ERR_NOT_FOUND", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error", "code": "ERR_INTERNAL"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
