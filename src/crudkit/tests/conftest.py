"""
Core pytest configuration for the entire test suite.

Only the database setup and logging installation live here. Domain fixtures (repositories, services,
sample users) are in tests/test_fixtures/ and imported at the bottom of this file so every test module
can use them without imports.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import AsyncGenerator

# -------------------------------
# Early logging tuning (IMPORTANT)
# -------------------------------
# Set the level for noisy third-party loggers before importing modules that might initialize them.
NOISY_LOGGERS = (
    "faker",
    "faker.factory",
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.engine.Engine",
    "aiosqlite",
    "asyncio",
)
for _name in NOISY_LOGGERS:
    logging.getLogger(_name).setLevel(logging.WARNING)

import pytest
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from crudkit.config import get_settings
from crudkit.core.logging.builder import setup_logging
from crudkit.database import create_session_factory
from crudkit.database.base import Base
from crudkit.models import user  # noqa: F401 – import to register models with Base.metadata

settings = get_settings()
logger = logging.getLogger(__name__)


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    """
    Install the library's dictConfig for the whole session, so formatters and filters are exercised by
    every log call the tests trigger.
    """
    setup_logging(settings)
    yield


# ------------------------------------------------------------------------------------------------
# Test database URL
# ------------------------------------------------------------------------------------------------


def get_test_database_url(tmp_path: Path) -> str:
    """
    Determine the test database URL.

    1. `TEST_DATABASE_URL` environment variable (CI override, e.g. a throwaway Postgres)
    2. App settings with `TESTING=true` and `TEST_POSTGRES_DB` set
    3. A per-test sqlite file under pytest's tmp_path (no server needed)

    Every repository operation opens its own session and commits, so a per-test file (or a
    create_all/drop_all cycle on a server database) is what keeps tests isolated.
    """
    if test_url := os.getenv("TEST_DATABASE_URL"):
        return test_url

    if settings.TESTING and settings.TEST_POSTGRES_DB:
        return settings.DATABASE_URL

    return f"sqlite+aiosqlite:///{tmp_path / 'test_database.db'}"


# ------------------------------------------------------------------------------------------------
# DATABASE FIXTURES
# ------------------------------------------------------------------------------------------------


@pytest.fixture()
async def async_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    url = get_test_database_url(tmp_path)
    logger.debug("tests.database", extra={"url": make_url(url).render_as_string(hide_password=True)})

    engine = create_async_engine(url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture()
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """The database handle repositories are constructed with."""
    return create_session_factory(async_engine)


# Repository / service fixtures
from .test_fixtures.repository_fixtures import (  # noqa: E402
    user_repository,
    generic_user_repository,
    user_service,
    sample_user_data,
    create_user,
    created_user,
    multiple_users,
)
