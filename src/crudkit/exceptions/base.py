"""
Custom exceptions for repository and service operations.

Taxonomy:
    CrudError
    ├── QueryError          the database reported a failure (bad column, constraint, connectivity)
    │   ├── DuplicateError      unique constraint violated
    │   ├── NotFoundError       a mutation targeted a row that does not exist
    │   └── InvalidFieldError   a column name (sort/filter/assignment) is not part of the entity
    ├── TransactionError    commit or rollback itself failed
    └── ValidationError     a business rule rejected the call (raised by services only)

A plain lookup that finds nothing is not an error: repositories return None for it.
"""

from typing import Iterable

from crudkit.dto.response import MessageResponse


class CrudError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['email'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'duplicate', 'invalid_field') used by clients
    """

    # Map canonical error_code -> default HTTP status for whatever API layer sits on top.
    ERROR_CODE_TO_STATUS = {
        "duplicate": 409,
        "invalid_field": 422,
        "not_found": 404,
        "validation": 422,
        "query": 400,
        "transaction": 500,
    }

    default_error_code: str | None = None

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code or self.default_error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_response(self) -> MessageResponse:
        """
        Return the `{message}` envelope for the API layer.
        The constraint name and raw DB text are never part of it.
        """
        return MessageResponse(message=self.message)

    def http_status(self) -> int:
        """
        HTTP status matching error_code, 400 when the code is unknown or missing.
        """
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class QueryError(CrudError):
    """The database (or query construction against it) failed."""

    default_error_code = "query"


class DuplicateError(QueryError):
    default_error_code = "duplicate"


class NotFoundError(QueryError):
    default_error_code = "not_found"

    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields)


class InvalidFieldError(QueryError):
    """Raised when a caller references a column the entity does not have."""

    default_error_code = "invalid_field"


class TransactionError(CrudError):
    """Commit or rollback failed; the outcome of the unit of work is unknown to the caller."""

    default_error_code = "transaction"


class ValidationError(CrudError):
    """A service-level business rule rejected the operation before any database call."""

    default_error_code = "validation"


__all__ = [
    "CrudError",
    "QueryError",
    "DuplicateError",
    "NotFoundError",
    "InvalidFieldError",
    "TransactionError",
    "ValidationError",
]
