"""Shared parsing helpers for request payloads.

parse_datetime:       ISO 8601 / YYYY-MM-DD / DD.MM.YYYY → aware UTC datetime
normalize_attachments: list of opaque file references, never None
serialize_record:     datetimes → ISO strings for JSON responses
"""
import json
import logging
from datetime import date, datetime, time, timezone

logger = logging.getLogger(__name__)


def parse_datetime(value):
    """Parse a date/datetime value into an aware UTC datetime.

    Returns None for empty input; raises ValueError on anything unparseable.
    Naive values are taken as UTC. Supports:
    - datetime / date objects
    - YYYY-MM-DD and full ISO 8601 (a trailing "Z" is accepted)
    - DD.MM.YYYY
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, "%d.%m.%Y")
            except ValueError as exc:
                raise ValueError(
                    "Invalid date format. Use ISO 8601 (YYYY-MM-DD[THH:MM:SS]) or DD.MM.YYYY."
                ) from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_attachments(value) -> list[str]:
    """Return attachments as an ordered list of strings.

    Accepts a list, None (→ []), or a JSON-encoded list, the format older
    clients send. Raises ValueError for anything else.
    """
    if value is None or value == "":
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise ValueError("attachments must be a list of file references") from exc
    if not isinstance(value, (list, tuple)):
        raise ValueError("attachments must be a list of file references")
    refs = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError("each attachment must be a non-empty string")
        refs.append(item)
    return refs


def serialize_record(record: dict) -> dict:
    """Copy of a record with datetimes rendered as ISO 8601 strings."""
    out = {}
    for key, val in record.items():
        if isinstance(val, datetime):
            out[key] = val.isoformat()
        elif isinstance(val, list):
            out[key] = list(val)
        else:
            out[key] = val
    return out
