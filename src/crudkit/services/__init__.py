from .generic_service import GenericService
from .service import Service
from .user_service import UserService

__all__ = ["GenericService", "Service", "UserService"]
