"""
User repository: the generic CRUD surface for `User` plus user-specific lookups.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crudkit.database.transaction import read_session
from crudkit.models.user import User

from .generic_repository import GenericRepository

logger = logging.getLogger(__name__)


class UserRepository(GenericRepository[User, int]):
    """
    Repository for User entity operations.

    Inherits every generic operation (find_by_id, find_page, create, update_by_id, delete, ...)
    and adds lookups only users need.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__(User, session_factory)

    async def find_by_email(self, email: str) -> User | None:
        """
        Find a user by email address, case-insensitively.

        Args:
            email: address to look up; surrounding whitespace is ignored

        Returns:
            The user, or None if no user has that address.
        """
        normalized = email.strip().lower()
        query = select(User).where(func.lower(User.email) == normalized).order_by(User.id).limit(1)

        async with read_session(self.session_factory, self.model_name) as session:
            user = (await session.execute(query)).scalars().first()

        logger.debug(
            "repo.find_by_email",
            extra={"model": self.model_name, "found": user is not None},
        )
        return user

        # Notes:
        #   - The service stores emails lower-cased, so `lower(email) = :normalized` also matches rows written
        #     before normalization existed (or inserted around the service).
        #   - The address itself is not logged.
