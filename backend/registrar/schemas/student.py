"""
Registrar Backend — Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract.
How:   `StudentPayload.from_json()` turns an already-validated request body
       into typed values; `StudentResponse` serializes ORM rows; the error
       and health models document the remaining response bodies.

Input validation rules live in registrar/validation.py. The payload model
only converts values that have already passed those checks.
"""

from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, Field

from registrar.exceptions import ValidationError
from registrar.models.student import Student
from registrar.validation import (
    is_zero_time,
    parse_calendar_date,
    parse_timestamp,
    validate_student,
)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class StudentPayload(BaseModel):
    """
    Client-writable student fields from a POST or PUT body.

    `enrolled_at` and `created_at` stay None when omitted; the create path
    lets the column defaults fill them, the update path copies them from the
    stored record.
    """
    name: str
    email: str
    age: int
    department: Optional[str] = None
    enrolled_at: Optional[date] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, body: Mapping[str, Any]) -> "StudentPayload":
        """
        Validates a decoded JSON object and converts it.

        Raises:
            ValidationError: with a `{field: rule}` map in `details`.
        """
        violations = validate_student(body)
        if violations:
            raise ValidationError(
                message="Validation failed",
                details={v.field: v.rule for v in violations},
            )
        return cls(
            name=body["name"],
            email=body["email"],
            age=body["age"],
            department=body.get("department"),
            enrolled_at=parse_calendar_date(body.get("enrolled_at")),
            created_at=parse_timestamp(body.get("created_at")),
        )

    def to_student(self, student_id: Optional[int] = None) -> Student:
        """Builds a transient Student; unset dates are left to the column defaults."""
        values = self.model_dump(exclude={"enrolled_at", "created_at"})
        for field in ("enrolled_at", "created_at"):
            value = getattr(self, field)
            if not is_zero_time(value):
                values[field] = value
        if student_id is not None:
            values["id"] = student_id
        return Student(**values)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class StudentResponse(BaseModel):
    """Full representation of a student, as stored or as sent to an update."""
    id: int = Field(description="Server-assigned identifier")
    name: str
    email: str
    age: int
    department: Optional[str] = None
    enrolled_at: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    """
    Error body shared by every endpoint.

    Example:
        {
            "error": "Validation failed",
            "details": {"age": "gte"},
            "request_id": "3f2a9c1d"
        }
    """
    error: str = Field(description="Human-readable error message")
    details: Optional[Union[Dict[str, Any], str]] = Field(
        default=None,
        description="Field-error map for validation failures or the underlying error text",
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy or unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected or disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
