# src/crudkit/core/logging/
# ├─ __init__.py            # public API: setup_logging, correlation id helpers
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # CorrelationIdFilter, RedactFilter (+ contextvar helpers)
# └─ handlers.py            # handler dict factories (console/file/error)

from .builder import make_dict_config, setup_logging
from .filters import (
    CorrelationIdFilter,
    RedactFilter,
    correlation_scope,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

__all__ = [
    "setup_logging",
    "make_dict_config",
    "CorrelationIdFilter",
    "RedactFilter",
    "correlation_scope",
    "get_correlation_id",
    "reset_correlation_id",
    "set_correlation_id",
]
