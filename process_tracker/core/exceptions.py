"""
Application-wide exception hierarchy.

Services raise these; blueprints register handlers against them once and
map them to HTTP status codes. None of them is retried by the core, and
every one is raised before the store is touched.

Usage:
    from process_tracker.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="ProcessChange", resource_id=42)
    raise ValidationError("title is required", details={"title": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "ProcessChange").
        resource_id: The id that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)


class ValidationError(Exception):
    """Raised when input is well-formed JSON but breaks a business rule.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names;
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class PermissionDenied(Exception):
    """Raised when an actor lacks read, write or delete rights on a change."""

    def __init__(self, actor_id: int, action: str, reason: str | None = None,
                 fields: list[str] | None = None) -> None:
        msg = f"Actor {actor_id} may not {action}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.actor_id = actor_id
        self.action = action
        self.reason = reason
        self.fields = fields or []


class InvalidTransitionError(Exception):
    """Raised when a status change is not allowed for the role/state pair."""

    def __init__(self, change_id: int | None, current: str, requested: str,
                 reason: str | None = None) -> None:
        msg = f"Cannot move change {change_id} from {current} to {requested}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.change_id = change_id
        self.current_status = current
        self.requested_status = requested
        self.reason = reason
