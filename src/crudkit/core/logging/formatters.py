# src/crudkit/core/logging/formatters.py
"""
Custom logging formatters.

  - JsonFormatter: one JSON object per line for log collectors. Structured repository events
    (`logger.info("repo.create.success", extra={"model": "User", "id": 1, ...})`) keep their extras
    as top-level keys, so they can be queried without parsing the message.

  - ColorFormatter: compact ANSI-colored lines for local development consoles.

The builder (dictConfig) picks one based on settings.LOG_FORMAT.
"""

import json
import logging
from logging import LogRecord
from typing import Any

from crudkit.utils.logging import get_project_version

PROJECT_VERSION = get_project_version()

# Attributes every LogRecord has; anything else on the record came in through `extra`.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """
    Structured JSON formatter.

    Construction:
      - env: environment name (e.g. "development" | "production")
      - service: logical service name included in every line
      - datefmt: optional date format used by formatTime

    Non-serializable extras are converted with str(); the formatter never raises.
    """

    def __init__(self, *, env: str | None = None, service: str = "crudkit", datefmt: str | None = None):
        super().__init__(datefmt=datefmt)
        self.env = env
        self.service = service

    def format(self, record: LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "correlation_id": getattr(record, "correlation_id", "-"),
            "service": self.service,
            "env": self.env,
            "version": PROJECT_VERSION,
        }

        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_record["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key in log_record or key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_record[key] = value
            except (TypeError, ValueError):
                log_record[key] = str(value)

        # ensure_ascii=False keeps unicode readable; default=str covers nested values
        return json.dumps(log_record, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """
    Development-friendly colored formatter:

        TIMESTAMP | LEVEL | LOGGER | CORRELATION_ID | MESSAGE [key=value ...]

    Only the level is colored. Extras are appended as key=value pairs so structured repository events
    stay readable in a terminal.
    """

    COLOR_CODES = {
        "DEBUG": "\033[1;36;47m",   # bold cyan on white
        "INFO": "\033[32m",         # green
        "WARNING": "\033[33m",      # yellow
        "ERROR": "\033[31m",        # red
        "CRITICAL": "\033[1;41m",   # bold on red background
        "RESET": "\033[0m",
    }

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: LogRecord) -> str:
        color = self.COLOR_CODES.get(record.levelname, "")
        reset = self.COLOR_CODES["RESET"]
        timestamp = self.formatTime(record, self.datefmt)

        base = (
            f"{timestamp} | {color}{record.levelname:<8}{reset} | "
            f"{record.name:<36} | "
            f"{getattr(record, 'correlation_id', '-'):<12} | "
            f"{record.getMessage()}"
        )

        extras = {
            k: v for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS and k != "correlation_id" and not k.startswith("_")
        }
        if extras:
            base += " " + " ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            base = base + "\n" + self.formatException(record.exc_info)

        return base
