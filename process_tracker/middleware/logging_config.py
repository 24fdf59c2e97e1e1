"""
Log setup for the process change tracker.

Two output shapes, picked from the app config:
    DEBUG or TESTING   one colored line per record, with request duration
                       and acting actor appended when present
    otherwise          one JSON object per line for the log shipper

LOG_LEVEL overrides the default level (DEBUG for local runs, INFO in
production). Request ids, actor ids and change ids attached through
``extra=`` by the timing middleware and the service layer are copied
into the JSON output.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
# Request context set by middleware.timing
_REQUEST_KEYS = ("method", "path", "status", "duration_ms", "remote_addr", "request_id")
# Workflow context set by the change service and the timing middleware
_WORKFLOW_KEYS = ("actor_id", "actor_role", "change_id")


class JSONFormatter(logging.Formatter):
    """One JSON object per record; known ``extra=`` attributes become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        for key in _REQUEST_KEYS + _WORKFLOW_KEYS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val
        # datetimes from change records are rendered with str()
        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Colored single-line output for local runs and the test suite."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.now().strftime("%H:%M:%S")
        suffix = ""
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            suffix += f" [{duration:.0f}ms]"
        for key, label in (("actor_id", "actor"), ("change_id", "change")):
            val = getattr(record, key, None)
            if val is not None:
                suffix += f" {label}={val}"
        base = (f"{color}{ts} {record.levelname:<8}{self.RESET} "
                f"{record.name}: {record.getMessage()}{suffix}")
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def configure_logging(app):
    """Install a single stderr handler on the root logger for ``app``.

    Called first in create_app so extension setup is already logged with
    the final format.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG")
    level = getattr(logging, level_name.upper(), logging.INFO)

    formatter = JSONFormatter() if is_prod else ReadableFormatter()

    # create_app runs once per test session and again in some tests
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    root.addHandler(handler)
    root.setLevel(level)

    # SQL echo and the dev server access log stay quiet below WARNING
    for noisy in ("werkzeug", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "JSON" if is_prod else "readable")
