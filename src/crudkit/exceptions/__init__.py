
# crudkit/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # App-level errors (CrudError, QueryError, ValidationError, ...)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific constraint classification
# │   └── mapper.py                  # Map SQL-level / DB-specific errors to app-level errors

from .base import (
    CrudError,
    QueryError,
    DuplicateError,
    NotFoundError,
    InvalidFieldError,
    TransactionError,
    ValidationError,
)

__all__ = [
    "CrudError",
    "QueryError",
    "DuplicateError",
    "NotFoundError",
    "InvalidFieldError",
    "TransactionError",
    "ValidationError",
]
