"""
Process Change Tracker
Process change blueprint: CRUD + workflow endpoints.

Endpoints summary:
    CHANGES  /api/v1/changes                     GET, POST
             /api/v1/changes/<id>                GET, PATCH, DELETE
             /api/v1/changes/<id>/transitions    GET   (statuses the caller may set)
             /api/v1/changes/summary             GET   (dashboard counts)
             /api/v1/changes/options             GET   (statuses + process areas)

Every endpoint requires an actor (X-Actor-Id / X-Actor-Role headers).
The service layer owns all business rules; this module only maps
requests to service calls and exceptions to HTTP responses.
"""

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from process_tracker.auth import current_actor, require_actor
from process_tracker.blueprints import paginate_items
from process_tracker.core.exceptions import (
    InvalidTransitionError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from process_tracker.models.process_change import PROCESS_AREAS, PROCESS_STATUSES
from process_tracker.services import process_change_service as svc
from process_tracker.utils.errors import E, api_error
from process_tracker.utils.helpers import serialize_record

logger = logging.getLogger(__name__)

process_change_bp = Blueprint("process_change", __name__, url_prefix="/api/v1")


# ── Error handlers ────────────────────────────────────────────────────────────


@process_change_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, "Process change not found")


@process_change_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@process_change_bp.errorhandler(PermissionDenied)
def _handle_permission(error: PermissionDenied):
    details = {"fields": error.fields} if error.fields else None
    return api_error(E.FORBIDDEN, str(error), details=details)


@process_change_bp.errorhandler(InvalidTransitionError)
def _handle_transition(error: InvalidTransitionError):
    return api_error(
        E.INVALID_TRANSITION,
        str(error),
        details={"from": error.current_status, "to": error.requested_status},
    )


@process_change_bp.errorhandler(SQLAlchemyError)
def _handle_database(error: SQLAlchemyError):
    logger.error("Database error on %s: %s", request.endpoint, error)
    return api_error(E.DATABASE, "Database error")


# ── Helpers ───────────────────────────────────────────────────────────────────


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _int_arg(name):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError("Invalid filter", details={name: "must be an integer"}) from exc


# ═════════════════════════════════════════════════════════════════════════════
#  CHANGES
# ═════════════════════════════════════════════════════════════════════════════


@process_change_bp.route("/changes", methods=["GET"])
@require_actor
def list_changes():
    """List changes, most recently updated first.

    Query params: status, process_area, change_owner, limit, offset
    """
    changes = svc.list_changes(
        current_actor(),
        status=request.args.get("status") or None,
        process_area=request.args.get("process_area") or None,
        change_owner=_int_arg("change_owner"),
    )
    page, total = paginate_items(changes)
    return jsonify({"items": [serialize_record(c) for c in page], "total": total})


@process_change_bp.route("/changes", methods=["POST"])
@require_actor
def create_change():
    """Create a change owned by the caller; status is always PROPOSED."""
    change = svc.create_change(current_actor(), _json_body())
    return jsonify(serialize_record(change)), 201


@process_change_bp.route("/changes/summary", methods=["GET"])
@require_actor
def change_summary():
    return jsonify(svc.summarize(current_actor()))


@process_change_bp.route("/changes/options", methods=["GET"])
@require_actor
def change_options():
    return jsonify({
        "statuses": list(PROCESS_STATUSES),
        "process_areas": list(PROCESS_AREAS),
    })


@process_change_bp.route("/changes/<int:change_id>", methods=["GET"])
@require_actor
def get_change(change_id):
    change = svc.get_change(current_actor(), change_id)
    return jsonify(serialize_record(change))


@process_change_bp.route("/changes/<int:change_id>", methods=["PATCH"])
@require_actor
def update_change(change_id):
    """Partial update. Status changes go through the workflow rules."""
    change = svc.update_change(current_actor(), change_id, _json_body())
    return jsonify(serialize_record(change))


@process_change_bp.route("/changes/<int:change_id>", methods=["DELETE"])
@require_actor
def delete_change(change_id):
    if not svc.delete_change(current_actor(), change_id):
        return api_error(E.NOT_FOUND, "Process change not found")
    return jsonify({"success": True})


@process_change_bp.route("/changes/<int:change_id>/transitions", methods=["GET"])
@require_actor
def list_transitions(change_id):
    return jsonify(svc.available_transitions(current_actor(), change_id))
