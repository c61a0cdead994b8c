# src/crudkit/core/logging/builder.py
"""
Logging builder: create and apply a dictConfig logging configuration from Settings.

The library itself only ever calls `logging.getLogger(__name__)`; configuring handlers is the host
application's job. `setup_logging(settings)` is the one call that does it:

    settings = get_settings()
    setup_logging(settings)

| Component      | What it does here                                              |
| -------------- | -------------------------------------------------------------- |
| **Formatters** | "standard" (color/plain text) and "json"                       |
| **Filters**    | "correlation_id" (stamps the contextvar id), "redact"          |
| **Handlers**   | console always; file + error_file OR error_console             |
| **Loggers**    | root, crudkit, sqlalchemy.engine, sqlalchemy.pool              |

Handler selection:
| `LOG_TO_STDOUT` | `LOG_DIR` set  | Active handlers                  |
| --------------- | -------------- | -------------------------------- |
| `true`          | doesn't matter | `console` + `error_console`      |
| `false`         | no             | `console` + `error_console`      |
| `false`         | yes            | `console` + `file` + `error_file`|
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path

from crudkit.config.settings import Settings
from crudkit.utils.logging import get_project_name

from .filters import CorrelationIdFilter, RedactFilter
from .formatters import ColorFormatter, JsonFormatter
from .handlers import (
    get_console_handler,
    get_error_console_handler,
    get_error_file_handler,
    get_file_handler,
)

STANDARD_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(correlation_id)s | %(message)s"


def make_dict_config(settings: Settings) -> dict:
    """
    Build the dictConfig mapping for `settings`. Pure function, nothing is applied.
    """
    formatters = {
        "standard": {
            # ColorFormatter only in text mode outside production
            "()": ColorFormatter if settings.LOG_FORMAT == "text" and settings.ENV != "production" else logging.Formatter,
            "format": STANDARD_FORMAT,
        },
        "json": {
            "()": JsonFormatter,
            "env": settings.ENV,
            "service": get_project_name() or "crudkit",
        },
    }

    filters = {
        "correlation_id": {"()": CorrelationIdFilter},
        "redact": {"()": RedactFilter},
    }

    handlers: dict[str, dict] = {"console": get_console_handler(settings)}

    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        handlers["file"] = get_file_handler(settings)
        handlers["error_file"] = get_error_file_handler(settings)
    else:
        handlers["error_console"] = get_error_console_handler(settings)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": filters,
        "handlers": handlers,
        "loggers": {
            "": {
                "handlers": list(handlers.keys()),
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # propagate to root: repository events share the root handlers
            "crudkit": {
                "level": settings.LOG_LEVEL,
                "propagate": True,
            },
            # Be cautious with SQL logging (statements and parameters may contain sensitive data)
            "sqlalchemy.engine": {
                "level": "INFO" if settings.ENABLE_SQL_LOGGING else "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.pool": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }


def setup_logging(settings: Settings) -> None:
    """
    Apply make_dict_config(settings).

    Steps:
      1. Ensure LOG_DIR exists when writing files.
      2. dictConfig(...) creates the handlers, formatters and filters.
      3. Add a CorrelationIdFilter to the root logger as a safety net for records that reach handlers
         added later by the host application.
    """
    if (not settings.LOG_TO_STDOUT) and settings.LOG_DIR:
        Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(make_dict_config(settings))
    logging.getLogger().addFilter(CorrelationIdFilter())
