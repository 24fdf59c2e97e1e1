"""
Process Change Tracker
Email Service.

Sends plain-text emails rendered from named templates.
When SMTP is not configured, emails are logged but not sent (dev/test mode).

Configuration (app config / env vars):
    MAIL_SERVER     SMTP host (default: None → log-only mode)
    MAIL_PORT       SMTP port (default: 587)
    MAIL_USE_TLS    Use TLS (default: true)
    MAIL_USERNAME   SMTP username
    MAIL_PASSWORD   SMTP password
    MAIL_DEFAULT_SENDER  Default from address
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Any

from flask import current_app

logger = logging.getLogger(__name__)


_TEMPLATES: dict[str, dict[str, str]] = {
    "new_change": {
        "subject": "New Process Change #{id}",
        "text": (
            "A new process change \"{title}\" ({process_area}) has been created "
            "and requires your review.\n\n"
            "Reason: {reason}\n"
            "Target date: {target_date}\n"
        ),
    },
    "status_update": {
        "subject": "Process Change #{id} - Status Update",
        "text": (
            "The status of process change \"{title}\" has been updated "
            "from {previous_status} to {status}.\n"
        ),
    },
}


class EmailService:
    """Email sending with template support; log-only without MAIL_SERVER."""

    @staticmethod
    def is_configured() -> bool:
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def get_template(template_name: str) -> dict[str, str] | None:
        return _TEMPLATES.get(template_name)

    @classmethod
    def send(cls, *, to_email: str, subject: str, text_body: str,
             template_name: str | None = None) -> dict:
        """
        Send an email.

        Returns:
            {"recipient", "subject", "template", "status"} where status is
            "logged" (dev mode), "sent" or "failed".
        """
        result = {
            "recipient": to_email,
            "subject": subject,
            "template": template_name,
            "status": "queued",
        }

        if not cls.is_configured():
            result["status"] = "logged"
            logger.info(
                "Email (dev mode): to=%s subject='%s' template=%s",
                to_email, subject, template_name,
            )
            return result

        try:
            cls._send_smtp(to_email=to_email, subject=subject, text_body=text_body)
            result["status"] = "sent"
            logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        except (smtplib.SMTPException, OSError) as exc:
            result["status"] = "failed"
            result["error"] = str(exc)[:1000]
            logger.error("Email failed: to=%s error=%s", to_email, exc)

        return result

    @classmethod
    def send_from_template(cls, *, to_email: str, template_name: str,
                           context: dict[str, Any]) -> dict | None:
        """Render a named template with ``context`` and send it."""
        template = cls.get_template(template_name)
        if not template:
            logger.warning("Email template not found: %s", template_name)
            return None

        subject = template["subject"].format_map(_SafeDict(context))
        text_body = template["text"].format_map(_SafeDict(context))
        return cls.send(
            to_email=to_email,
            subject=subject,
            text_body=text_body,
            template_name=template_name,
        )

    @staticmethod
    def _send_smtp(*, to_email: str, subject: str, text_body: str) -> None:
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 587)
        use_tls = cfg.get("MAIL_USE_TLS", True)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")
        sender = cfg.get("MAIL_DEFAULT_SENDER", f"noreply@{server}")

        msg = MIMEText(text_body, "plain")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to_email

        with smtplib.SMTP(server, port, timeout=30) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(msg)


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"
