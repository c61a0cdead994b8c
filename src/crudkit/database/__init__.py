from .base import Base
from .session import create_engine_from_settings, create_session_factory
from .transaction import transaction, read_session

__all__ = [
    "Base",
    "create_engine_from_settings",
    "create_session_factory",
    "transaction",
    "read_session",
]
