"""
Scoped transaction helpers shared by every repository operation.

`transaction()` is the single place where mutations get their transaction:

    async with transaction(self.session_factory, "User") as session:
        session.add(entity)
        await session.flush()

- a new session and exactly one transaction are opened on entry
- the block's exception (any exception) triggers a rollback *before* it propagates
- database exceptions are mapped to crudkit exceptions, chained to the original with `from`
- commit happens only when the block finished without raising
- a failing commit or rollback surfaces as TransactionError

`read_session()` is the read-only sibling: no explicit commit, same error mapping.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crudkit.exceptions.base import TransactionError
from crudkit.exceptions.mapper import map_db_error

logger = logging.getLogger(__name__)


async def _rollback(session: AsyncSession, entity_name: str | None) -> None:
    try:
        await session.rollback()
    except Exception as exc:
        # the original error is still attached as __context__
        logger.exception("transaction.rollback_failed", extra={"model": entity_name})
        raise TransactionError(f"Rollback failed for {entity_name or 'database'}") from exc


@asynccontextmanager
async def transaction(
    session_factory: async_sessionmaker[AsyncSession],
    entity_name: str | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Open a session, begin a transaction, yield the session, commit on success, rollback on failure.
    """
    start = time.perf_counter()
    async with session_factory() as session:
        await session.begin()
        logger.debug("transaction.begin", extra={"model": entity_name})

        try:
            yield session
        except Exception as exc:
            await _rollback(session, entity_name)
            logger.debug(
                "transaction.rolled_back",
                extra={"model": entity_name, "error_type": type(exc).__name__},
            )
            mapped = map_db_error(exc, entity_name)
            if mapped is exc:
                raise
            raise mapped from exc

        try:
            await session.commit()
        except Exception as exc:
            logger.exception("transaction.commit_failed", extra={"model": entity_name})
            await _rollback(session, entity_name)
            raise TransactionError(f"Commit failed for {entity_name or 'database'}") from exc

        logger.debug(
            "transaction.committed",
            extra={
                "model": entity_name,
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )


@asynccontextmanager
async def read_session(
    session_factory: async_sessionmaker[AsyncSession],
    entity_name: str | None = None,
) -> AsyncIterator[AsyncSession]:
    """
    Session for queries. Closing it releases the connection and ends the implicit read transaction.
    """
    async with session_factory() as session:
        try:
            yield session
        except Exception as exc:
            mapped = map_db_error(exc, entity_name)
            if mapped is exc:
                raise
            raise mapped from exc
