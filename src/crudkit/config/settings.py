from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from pathlib import Path
from typing import Literal
from functools import lru_cache
from ..validators.config_validators import to_uppercase, to_lowercase, empty_to_none


class Settings(BaseSettings):
    """
    Settings for the persistence layer, loaded from the environment (and an optional .env file).

    The database handle is built from these values once at startup (see `crudkit.database.session`);
    repositories never read settings themselves, they only receive the session factory.
    """

    # Environment
    ENV: Literal["development", "testing", "staging", "production"] = "development"

    # Database configuration.
    # DATABASE_URL_OVERRIDE wins when provided; otherwise the URL is assembled from the POSTGRES_* parts.
    DATABASE_URL_OVERRIDE: str | None = None
    POSTGRES_DRIVER: str = "asyncpg"
    POSTGRES_USERNAME: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "crudkit"

    # Test database configuration
    TEST_POSTGRES_DB: str | None = None
    TESTING: bool = False

    # SQLAlchemy engine / pool
    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_PRE_PING: bool = True

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "text"] = "json"
    LOG_TO_STDOUT: bool = True
    LOG_DIR: Path = Path("/var/log/crudkit")
    LOG_MAX_BYTES: int = 10_000_000  # 10 MB
    LOG_BACKUP_COUNT: int = 5
    ENABLE_SQL_LOGGING: bool = False

    # --- Derived settings ---
    @property
    def DATABASE_URL(self) -> str:
        """
        Return the database URL for the current environment.

        - An explicit `DATABASE_URL_OVERRIDE` (env var `DATABASE_URL_OVERRIDE`) is returned as-is.
          This is how sqlite (`sqlite+aiosqlite:///./local.db`) or any non-Postgres backend is selected.
        - With `TESTING=True` and `TEST_POSTGRES_DB` set, the test database name replaces `POSTGRES_DB`
          so a test run can never touch the regular database.
        - Otherwise the regular Postgres URL is assembled.
        """
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE

        db_name = self.POSTGRES_DB
        if self.TESTING and self.TEST_POSTGRES_DB:
            db_name = self.TEST_POSTGRES_DB

        return (
            f"postgresql+{self.POSTGRES_DRIVER}://"
            f"{self.POSTGRES_USERNAME}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{db_name}"
        )

    # --- Validators ---
    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str | None) -> str | None:
        """
        Uppercase LOG_LEVEL before Literal validation, so `LOG_LEVEL=debug` is accepted.
        """
        return to_uppercase(v)

    @field_validator("LOG_FORMAT", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str | None) -> str | None:
        return to_lowercase(v)

    @field_validator("DATABASE_URL_OVERRIDE", "TEST_POSTGRES_DB", mode="before")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        return empty_to_none(v)

    model_config = SettingsConfigDict(
        # .env at the project root (three levels up from this file: config/ -> crudkit/ -> src/ -> root)
        env_file=str(Path(__file__).resolve().parents[3] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


# get_settings() takes no arguments and always returns the same settings from the environment,
# so caching it with @lru_cache() keeps a single Settings instance per process.
@lru_cache()
def get_settings() -> Settings:
    return Settings()
