import logging
from enum import Enum
from typing import Any, Type
from sqlalchemy.exc import IntegrityError
from .base import QueryError

logger = logging.getLogger(__name__)

# =================================================================================================================
# Constraint-specific exceptions (internal classification only, never raised to callers)
# =================================================================================================================


class ConstraintViolationError(QueryError):
    """Base for integrity/constraint violations."""
    pass


class UniqueConstraintError(ConstraintViolationError):
    pass


class NotNullConstraintError(ConstraintViolationError):
    pass


class ForeignKeyConstraintError(ConstraintViolationError):
    pass


class CheckConstraintError(ConstraintViolationError):
    pass


class UnknownIntegrityError(ConstraintViolationError):
    pass


# =================================================================================================================
# Driver error code mapping
# =================================================================================================================

# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_EXCEPTION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION.value: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION.value: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION.value: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION.value: CheckConstraintError,
}

# MySQL / MariaDB server error numbers (first element of orig.args)
MYSQL_ERRNO_EXCEPTION_MAP = {
    1062: UniqueConstraintError,
    1048: NotNullConstraintError,
    1364: NotNullConstraintError,
    1216: ForeignKeyConstraintError,
    1452: ForeignKeyConstraintError,
    3819: CheckConstraintError,
}


# =================================================================================================================
# Integrity Error Classifiers
# =================================================================================================================

def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _postgres_constraint_name(orig: Any) -> str | None:
    # psycopg exposes orig.diag.constraint_name; the asyncpg adapter keeps the driver
    # exception (with .constraint_name) as __cause__.
    diag = getattr(orig, "diag", None)
    if diag is not None and getattr(diag, "constraint_name", None):
        return diag.constraint_name
    cause = getattr(orig, "__cause__", None)
    return getattr(cause, "constraint_name", None)


def _classify_from_postgres_code(orig: Any) -> tuple[Type[ConstraintViolationError] | None, str | None]:
    """
    Classify by SQLSTATE. psycopg uses `pgcode`, SQLAlchemy's asyncpg adapter uses `sqlstate`.
    """
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if not code:
        return None, None

    constraint_name = _postgres_constraint_name(orig)
    exception_class = PGCODE_EXCEPTION_MAP.get(str(code))

    if exception_class:
        logger.debug(
            "integrity.postgres_diagnostic",
            extra={"sqlstate": code, "constraint_name": constraint_name},
        )
        return exception_class, constraint_name

    logger.warning(
        "integrity.unknown_postgres_code",
        extra={"sqlstate": code, "constraint_name": constraint_name},
    )
    return UnknownIntegrityError, constraint_name


def _classify_from_mysql_errno(orig: Any) -> Type[ConstraintViolationError] | None:
    args = getattr(orig, "args", None) or ()
    if args and isinstance(args[0], int):
        return MYSQL_ERRNO_EXCEPTION_MAP.get(args[0])
    return None


def _classify_from_generic_message(msg: str) -> Type[ConstraintViolationError]:
    """
    Message heuristics (SQLite has no error codes on IntegrityError).
    """
    normalized = (msg or "").lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return UniqueConstraintError

    if _match_any(normalized, ["not null constraint", "not null", "null value in column"]):
        return NotNullConstraintError

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return ForeignKeyConstraintError

    if _match_any(normalized, ["check constraint", "check failed"]):
        return CheckConstraintError

    logger.warning("integrity.unknown_message", extra={"message_snippet": normalized[:200]})
    return UnknownIntegrityError


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Classify a SQLAlchemy IntegrityError into a ConstraintViolationError subclass.

    Order: Postgres SQLSTATE, MySQL errno, then message text.

    Returns:
        (ExceptionClass, constraint_name if the driver reported one)
    """
    orig = exc.orig

    exception_class, constraint_name = _classify_from_postgres_code(orig)
    if exception_class is not None:
        return exception_class, constraint_name

    exception_class = _classify_from_mysql_errno(orig)
    if exception_class is not None:
        return exception_class, None

    return _classify_from_generic_message(str(orig) if orig is not None else str(exc)), None
