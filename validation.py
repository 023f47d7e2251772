"""
Field rules shared by the request schemas, the habit store and the routes.

Each check either returns the cleaned value or raises FieldError with the
message sent back to the client.
"""
import re
from datetime import date
from typing import Iterable, Optional

from errors import FieldError

CATEGORIES = ("Health", "Fitness", "Learning", "Productivity", "Social", "Mindfulness", "General")
FREQUENCIES = ("Daily", "Weekly", "Bi-weekly", "Monthly")
PRIORITIES = ("Low", "Medium", "High")
STATUSES = ("Active", "Paused", "Completed")

CHOICES = {
    "category": CATEGORIES,
    "frequency": FREQUENCIES,
    "priority": PRIORITIES,
    "status": STATUSES,
}

DEFAULTS = {
    "category": "General",
    "frequency": "Daily",
    "priority": "Medium",
    "status": "Active",
    "target_date": None,
    "streak": 0,
    "notes": "",
}

# When several fields are invalid at once, the first one in this order is reported.
FIELD_ORDER = (
    "title",
    "description",
    "category",
    "frequency",
    "priority",
    "status",
    "target_date",
    "streak",
    "notes",
    "username",
    "email",
    "password",
)

MIN_PASSWORD_LENGTH = 6
# bcrypt ignores everything past this many bytes.
MAX_PASSWORD_BYTES = 72
# Largest integer a BSON int64 can hold.
MAX_INT64 = 2 ** 63 - 1

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_text(field: str, value) -> str:
    if value is None:
        raise FieldError(field, f"{field.capitalize()} is required")
    if not isinstance(value, str):
        raise FieldError(field, f"Invalid {field}")
    value = value.strip()
    if not value:
        raise FieldError(field, f"{field.capitalize()} is required")
    return value


def check_choice(field: str, value) -> Optional[str]:
    """Return the enum value, or None when the field was left empty."""
    if value is None or value == "":
        return None
    if value not in CHOICES[field]:
        raise FieldError(field, f"Invalid {field}")
    return value


def parse_streak(value) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise FieldError("streak", "Invalid streak")
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise FieldError("streak", "Invalid streak")
        value = int(value)
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0 or value > MAX_INT64:
        raise FieldError("streak", "Invalid streak")
    return value


def parse_target_date(value) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise FieldError("target_date", "Invalid target_date")
    value = value.strip()
    try:
        date.fromisoformat(value)
    except ValueError:
        raise FieldError("target_date", "Invalid target_date")
    return value


def clean_notes(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FieldError("notes", "Invalid notes")
    return value.strip()


def check_password(value) -> str:
    if value is None or value == "":
        raise FieldError("password", "Password is required")
    if not isinstance(value, str):
        raise FieldError("password", "Invalid password")
    return value


def check_new_password(value) -> str:
    value = check_password(value)
    if len(value) < MIN_PASSWORD_LENGTH:
        raise FieldError("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise FieldError("password", f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


def _field_name(loc: Iterable) -> Optional[str]:
    names = [part for part in loc if isinstance(part, str) and part not in ("body", "query", "path")]
    return names[-1] if names else None


def _rank(error: dict) -> int:
    field = _field_name(error.get("loc", ()))
    if field in FIELD_ORDER:
        return FIELD_ORDER.index(field)
    return len(FIELD_ORDER)


def first_error_message(errors) -> str:
    """Pick the single message to report from a list of pydantic errors."""
    errors = list(errors)
    if not errors:
        return "Invalid request"
    error = min(errors, key=_rank)
    field = _field_name(error.get("loc", ()))
    kind = error.get("type")
    if kind == "invalid_field":
        return error["msg"]
    if kind == "json_invalid":
        return "Invalid JSON body"
    if field is None:
        return "Request body is required" if kind == "missing" else "Invalid request body"
    return f"Invalid {field}"
