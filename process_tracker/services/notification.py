"""
Process Change Tracker
Notification Service.

Emails reviewers when a change is created and when its status moves.
Recipients come from the NOTIFY_RECIPIENTS config (comma-separated).
A notification must never fail the mutation that triggered it, so every
delivery error is logged and dropped here.
"""

import logging

from flask import current_app

from process_tracker.services.email_service import EmailService
from process_tracker.utils.helpers import serialize_record

logger = logging.getLogger(__name__)


class NotificationService:
    """Stateless service class for change notifications."""

    @staticmethod
    def recipients() -> list[str]:
        raw = current_app.config.get("NOTIFY_RECIPIENTS") or ""
        return [r.strip() for r in raw.split(",") if r.strip()]

    @classmethod
    def notify_new_change(cls, change: dict) -> list[dict]:
        return cls._broadcast("new_change", serialize_record(change))

    @classmethod
    def notify_status_change(cls, change: dict, previous_status: str) -> list[dict]:
        context = serialize_record(change)
        context["previous_status"] = previous_status
        return cls._broadcast("status_update", context)

    @classmethod
    def _broadcast(cls, template_name: str, context: dict) -> list[dict]:
        results = []
        for recipient in cls.recipients():
            try:
                result = EmailService.send_from_template(
                    to_email=recipient, template_name=template_name, context=context,
                )
            except Exception:
                logger.exception(
                    "Notification %s for change %s to %s failed",
                    template_name, context.get("id"), recipient,
                )
                continue
            if result:
                results.append(result)
        return results
