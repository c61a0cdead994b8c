r"""
Translate SQLAlchemy exceptions into crudkit exceptions.

Two levels are involved:

1. Constraint-specific classes from `integrity_classifier` (UniqueConstraintError, ...). They describe
   *what failed in the database* and stay internal.
2. App-level classes from `base` (DuplicateError, QueryError, ...). These are what repositories raise
   and what services, API handlers and tests catch.

| Constraint-level (internal) | → | App-level (raised)                       |
| --------------------------- | - | ---------------------------------------- |
| `UniqueConstraintError`     | → | `DuplicateError`                         |
| `NotNullConstraintError`    | → | `QueryError("Missing required field")`   |
| `ForeignKeyConstraintError` | → | `QueryError("referenced entity ...")`    |
| `CheckConstraintError`      | → | `QueryError("business rule violated")`   |
| anything else               | → | `QueryError("database integrity error")` |

The functions here *return* the mapped exception; the caller raises it with `from exc` so the
original driver error stays reachable through `__cause__`.
"""
import re
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import CrudError, DuplicateError, QueryError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

def _extract_columns_postgres(msg: str) -> list[str] | None:
    """
    Postgres messages:
      - 'null value in column "name" violates not-null constraint'
      - 'DETAIL:  Key (email)=(a@b.com) already exists.'
    """
    m = re.search(r'null value in column "(?P<col>[^"]+)"', msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]

    m = re.search(r'key \((?P<cols>[^)]+)\)=', msg, flags=re.IGNORECASE)
    if m:
        return [c.strip().strip('"') for c in m.group("cols").split(",")]

    return None


def _extract_columns_sqlite(msg: str) -> list[str] | None:
    # 'UNIQUE constraint failed: users.email' / 'NOT NULL constraint failed: users.name'
    m = re.search(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', msg, flags=re.IGNORECASE | re.MULTILINE)
    if m:
        return [c.split('.')[-1].strip() for c in re.split(r',\s*', m.group("cols"))]
    return None


def _extract_columns_mysql(msg: str) -> list[str] | None:
    # "Duplicate entry 'foo' for key 'users.email'" / "Column 'name' cannot be null"
    m = re.search(r"for key '(?P<key>[^']+)'", msg, flags=re.IGNORECASE)
    if m:
        return [m.group("key").split('.')[-1]]
    m = re.search(r"Column '(?P<col>[^']+)' cannot be null", msg, flags=re.IGNORECASE)
    if m:
        return [m.group("col")]
    return None


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    """
    msg = str(exc.orig) if exc.orig is not None else str(exc)
    if not msg:
        return None

    for extractor in (_extract_columns_postgres, _extract_columns_sqlite, _extract_columns_mysql):
        cols = extractor(msg)
        if cols:
            return cols
    return None


# -----------------------
# Mappers
# -----------------------

def map_integrity_error(exc: IntegrityError, model_name: str | None = None) -> QueryError:
    """
    Map an IntegrityError to DuplicateError or QueryError, filling `.fields` and `.constraint`
    where the driver message allows it.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if exc_cls is UniqueConstraintError:
        # expected client-level conflict: INFO, no stack
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            return DuplicateError(f"{model_part} already exists for field(s): {', '.join(columns)}",
                                  fields=columns, constraint=constraint_name)
        return DuplicateError(f"{model_part} already exists", constraint=constraint_name)

    if exc_cls is NotNullConstraintError:
        logger.info(
            "mapper.not_null_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            return QueryError(f"Missing required field(s): {', '.join(columns)} for {model_part}",
                              fields=columns, constraint=constraint_name)
        return QueryError(f"Missing required field for {model_part}", constraint=constraint_name)

    if exc_cls is ForeignKeyConstraintError:
        logger.info(
            "mapper.foreign_key_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        return QueryError(f"{model_part} referenced entity not found", fields=columns, constraint=constraint_name)

    if exc_cls is CheckConstraintError:
        # raw DB text only at DEBUG
        logger.debug(
            "mapper.check_constraint_failure",
            extra={"model": model_part, "raw": str(exc.orig), "constraint": constraint_name},
        )
        return QueryError(f"{model_part} business rule violated (check constraint).", constraint=constraint_name)

    logger.warning("mapper.unknown_integrity_error", extra={"model": model_part, "constraint": constraint_name})
    return QueryError(f"{model_part} database integrity error.", constraint=constraint_name)


def map_db_error(exc: Exception, model_name: str | None = None) -> Exception:
    """
    Map any exception raised inside a repository operation.

    - crudkit errors pass through unchanged (already meaningful to callers)
    - IntegrityError is classified (see map_integrity_error)
    - any other SQLAlchemyError becomes a QueryError
    - everything else is returned unchanged, the caller re-raises the original
    """
    if isinstance(exc, CrudError):
        return exc
    if isinstance(exc, IntegrityError):
        return map_integrity_error(exc, model_name)
    if isinstance(exc, SQLAlchemyError):
        logger.error(
            "mapper.query_failed",
            extra={"model": model_name, "error_type": type(exc).__name__},
        )
        return QueryError(f"Failed to operate on {model_name or 'database'}")
    return exc
