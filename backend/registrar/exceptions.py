"""
Registrar Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions, each tagged with an `ErrorKind`.
How:   The persistence gateway and request handlers raise these; a single
       exception handler registered in main.py switches on `exc.kind` to pick
       the HTTP status and renders `{"error", "details", "request_id"}`.
Who:   Raised by services, routes and the bootstrap code.

Exception Hierarchy:
    RegistrarError (base)
    ├── ValidationError          kind=VALIDATION → 400 Bad Request
    ├── NotFoundError            kind=NOT_FOUND  → 404 Not Found
    ├── StorageError             kind=STORAGE    → 500 Internal Server Error
    │   └── UniqueViolationError kind=STORAGE    → 500 Internal Server Error
    └── ConfigurationError       startup only, never reaches a request

Storage errors carry the driver message in `details`; it is returned to the
client unchanged.
"""

import enum
from typing import Any, Dict, Optional, Union


Details = Union[Dict[str, Any], str, None]


class ErrorKind(str, enum.Enum):
    """Closed set of failure categories the handler layer maps to HTTP statuses."""

    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    STORAGE = "storage"


class RegistrarError(Exception):
    """
    Base exception for all Registrar application errors.

    Attributes:
        message:  User-facing error description (the `error` field of the response)
        details:  Field-error map or underlying error text (the `details` field)
        kind:     Category used to select the HTTP status code
    """

    kind: ErrorKind = ErrorKind.STORAGE

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Details = None,
    ):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ValidationError(RegistrarError):
    """
    Raised when client input fails validation.

    When:    Malformed id path segment, malformed JSON body, field rule violations.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "Validation failed",
            "details": {"age": "gte", "email": "email"}
        }
    """

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str = "Validation failed",
        details: Details = None,
    ):
        super().__init__(message=message, details=details)


class NotFoundError(RegistrarError):
    """
    Raised when no active (non-deleted) record matches the requested id.

    HTTP:    404 Not Found
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
    ):
        super().__init__(message=f"{resource} not found")
        self.resource = resource
        self.resource_id = resource_id


class StorageError(RegistrarError):
    """
    Raised when a database operation fails.

    When:    Connection lost, constraint violation, driver error.
    HTTP:    500 Internal Server Error
    """

    kind = ErrorKind.STORAGE

    def __init__(
        self,
        message: str = "A database error occurred",
        details: Details = None,
    ):
        super().__init__(message=message, details=details)

    def relabel(self, message: str) -> "StorageError":
        """Returns a copy of this error with an operation-specific message."""
        return type(self)(message=message, details=self.details)


class UniqueViolationError(StorageError):
    """Raised when an insert or update collides with the active-email unique index."""


class ConfigurationError(RegistrarError):
    """
    Raised at startup when required settings are missing or invalid.

    Never mapped to a response: the lifespan lets it propagate so the server
    refuses to start.
    """
