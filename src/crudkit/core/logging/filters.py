# src/crudkit/core/logging/filters.py
"""
Logging filters

Correlation id filter and helpers for logging.

A correlation id ties together every log line produced by one logical unit of work: one API request,
one job, one CLI command. Repository and service code never passes it around explicitly; the host sets
it once per unit of work and every record logged in that context carries it.

Why contextvars
----------------
- The id is stored in a `contextvars.ContextVar`, so it follows the code across `await` boundaries and
  is isolated between concurrently running asyncio tasks (threading.local() is not).
- `CorrelationIdFilter` guarantees every record has a `correlation_id` attribute (the real id or the
  sentinel "-") so format strings referencing `%(correlation_id)s` never fail.

Usage
-----
    async def handle(job):
        with correlation_scope(job.id):
            await user_service.create(...)   # every log line carries job.id

Security
--------
- Do not derive the id from sensitive information (user tokens, PII).
- RedactFilter masks record attributes whose name looks like a secret (password, token, ...).
"""

import contextvars
import logging
import uuid
from contextlib import contextmanager
from logging import LogRecord
from typing import Iterator

# Default None means "no correlation id set in this context".
_correlation_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def set_correlation_id(correlation_id: str | None):
    """
    Set the correlation id in the current context.

    Returns:
        token: contextvars.Token, pass it to reset_correlation_id(token) to restore the previous value
    """
    return _correlation_id_ctx.set(correlation_id)


def reset_correlation_id(token) -> None:
    _correlation_id_ctx.reset(token)


def get_correlation_id() -> str | None:
    return _correlation_id_ctx.get()


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """
    Set a correlation id (a new uuid4 hex when none is given) for the duration of the block.
    """
    cid = correlation_id or uuid.uuid4().hex
    token = set_correlation_id(cid)
    try:
        yield cid
    finally:
        reset_correlation_id(token)


class CorrelationIdFilter(logging.Filter):
    """
    Guarantees every LogRecord has a `correlation_id` attribute.

    Priority:
      1. record.correlation_id when passed explicitly via extra
      2. the contextvar value
      3. the sentinel "-"

    Always returns True: it annotates, it never drops records.
    """

    def filter(self, record: LogRecord) -> bool:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or get_correlation_id() or "-"
        )
        return True


# Redact sensitive information
class RedactFilter(logging.Filter):
    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "ssn", "authorization"}
    MASK = "***REDACTED***"

    def filter(self, record: LogRecord) -> bool:
        # mask attributes on record that match SENSITIVE (these arrive via extra={...})
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = self.MASK
        return True
