"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready : simple 200 for load balancers
    GET /api/v1/health/live  : change store status
"""

import logging
import time

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from process_tracker.store import get_store

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe: always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check including the change store."""
    store = get_store()
    try:
        t0 = time.perf_counter()
        store.ping()
        latency_ms = (time.perf_counter() - t0) * 1000
        check = {"status": "ok", "backend": store.name, "latency_ms": round(latency_ms, 1)}
        overall = True
    except SQLAlchemyError as exc:
        check = {"status": "error", "backend": store.name, "detail": str(exc)}
        overall = False
        logger.error("Health check: change store failed: %s", exc)

    body = {"status": "ok" if overall else "degraded", "checks": {"store": check}}
    return jsonify(body), 200 if overall else 503
