"""
Engine and session-factory construction.

The session factory returned by `create_session_factory()` is the "database handle" every repository
receives at construction time. It is process-wide, created once by the host application and shared by
all repositories; the engine behind it owns the connection pool.

    engine = create_engine_from_settings(get_settings())
    session_factory = create_session_factory(engine)
    users = UserService(UserRepository(session_factory))
    ...
    await engine.dispose()   # at shutdown
"""

import logging
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from crudkit.config.settings import Settings

logger = logging.getLogger(__name__)


def create_engine_from_settings(settings: Settings, **overrides: Any) -> AsyncEngine:
    """
    Create the AsyncEngine described by `settings`.

    Pool sizing only applies to server databases; sqlite URLs get SQLAlchemy's defaults.
    Keyword `overrides` are passed straight to `create_async_engine`.
    """
    url = make_url(settings.DATABASE_URL)

    options: dict[str, Any] = {
        "echo": settings.SQLALCHEMY_ECHO,
        "pool_pre_ping": settings.DB_POOL_PRE_PING,
    }
    if not url.drivername.startswith("sqlite"):
        options["pool_size"] = settings.DB_POOL_SIZE
        options["max_overflow"] = settings.DB_MAX_OVERFLOW
    options.update(overrides)

    # never log the password
    logger.info(
        "database.engine.create",
        extra={"url": url.render_as_string(hide_password=True), "env": settings.ENV},
    )
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory used by repositories.

    expire_on_commit=False keeps returned models readable after their transaction commits and the
    session closes (repositories hand detached instances back to callers).
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
