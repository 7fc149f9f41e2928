"""
Registrar Backend — Student Field Validation
==============================================

What:  Explicit, per-field validation of a decoded JSON request body.
How:   Each `check_<field>` function inspects one raw value and returns the
       name of the rule it violates, or None. `validate_student()` runs them
       all and collects `(field, rule)` pairs, in field order.
Who:   Called by the student request handlers before anything touches the
       database.

Rules:
    required  value missing, null, or empty/blank text
    string    value present but not a JSON string
    int       value present but not a JSON integer (booleans included), or
              outside the 32-bit range of the age column
    gte       age below the minimum
    max       text longer than the column allows
    email     text is not a syntactically valid email address
    date      date/timestamp text that cannot be parsed
"""

import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional

from email_validator import EmailNotValidError, validate_email

from registrar.models.student import (
    DEPARTMENT_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    MAXIMUM_AGE_VALUE,
    MINIMUM_AGE,
    NAME_MAX_LENGTH,
)


class FieldViolation(NamedTuple):
    field: str
    rule: str


# ── Value parsing helpers ─────────────────────────────────────────────────

ZERO_DATE = date(1, 1, 1)
ZERO_TIMESTAMP = datetime(1, 1, 1, tzinfo=timezone.utc)

# fromisoformat() before 3.11 only takes 3 or 6 fractional digits
_FRACTION = re.compile(r"\.(\d+)")


def _blank_to_none(value: Any, kind: str) -> Optional[str]:
    """Returns stripped text, or None for None and whitespace-only strings."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"expected a {kind} string, got {type(value).__name__}")
    return value.strip() or None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parses an RFC 3339 / ISO 8601 timestamp. None and blank text parse to None.

    Fractional seconds of any precision are accepted and cut to microseconds.
    Naive timestamps are taken as UTC. Raises ValueError on malformed text.
    """
    text = _blank_to_none(value, "timestamp")
    if text is None:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_calendar_date(value: Any) -> Optional[date]:
    """
    Parses either a bare `YYYY-MM-DD` date or a full timestamp (date part kept).

    None and blank text parse to None. Raises ValueError on malformed text.
    """
    text = _blank_to_none(value, "date")
    if text is None:
        return None
    if len(text) == 10:
        return date.fromisoformat(text)
    return parse_timestamp(text).date()


def is_zero_time(value: Optional[date]) -> bool:
    """
    True for an unset date/timestamp.

    Clients serializing a zero time send `0001-01-01T00:00:00Z`; that exact
    instant (or the bare date 0001-01-01) is treated as omitting the field.
    """
    if value is None:
        return True
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value == ZERO_TIMESTAMP
    return value == ZERO_DATE


# ── Per-field checks ──────────────────────────────────────────────────────

def _check_text(value: Any, max_length: int, required: bool) -> Optional[str]:
    if value is None:
        return "required" if required else None
    if not isinstance(value, str):
        return "string"
    if required and not value.strip():
        return "required"
    if len(value) > max_length:
        return "max"
    return None


def check_name(value: Any) -> Optional[str]:
    return _check_text(value, NAME_MAX_LENGTH, required=True)


def check_email(value: Any) -> Optional[str]:
    rule = _check_text(value, EMAIL_MAX_LENGTH, required=True)
    if rule:
        return rule
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return "email"
    return None


def check_age(value: Any) -> Optional[str]:
    if value is None:
        return "required"
    # bool is a subclass of int; JSON true/false is not an age.
    if isinstance(value, bool) or not isinstance(value, int):
        return "int"
    if value > MAXIMUM_AGE_VALUE:
        return "int"
    if value < MINIMUM_AGE:
        return "gte"
    return None


def check_department(value: Any) -> Optional[str]:
    return _check_text(value, DEPARTMENT_MAX_LENGTH, required=False)


def check_enrolled_at(value: Any) -> Optional[str]:
    try:
        parse_calendar_date(value)
    except ValueError:
        return "date"
    return None


def check_created_at(value: Any) -> Optional[str]:
    try:
        parse_timestamp(value)
    except ValueError:
        return "date"
    return None


FIELD_CHECKS: Dict[str, Callable[[Any], Optional[str]]] = {
    "name": check_name,
    "email": check_email,
    "age": check_age,
    "department": check_department,
    "enrolled_at": check_enrolled_at,
    "created_at": check_created_at,
}


def validate_student(payload: Mapping[str, Any]) -> List[FieldViolation]:
    """
    Runs every field check against `payload`.

    Unknown keys (including `id`, `updated_at`, `deleted_at`) are ignored.

    Returns:
        One FieldViolation per failing field; empty when the payload is valid.
    """
    violations = []
    for field, check in FIELD_CHECKS.items():
        rule = check(payload.get(field))
        if rule is not None:
            violations.append(FieldViolation(field, rule))
    return violations
