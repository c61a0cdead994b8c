"""
User service: the generic pass-through plus the rules a user must satisfy before it is written.

Rules (checked before the repository is called, so a rejected call never touches the database):
    - name must not be empty or whitespace
    - email must not be empty; it is stored stripped and lower-cased

The caller's instance is never modified: the repository receives a normalized copy.
"""

import logging

from crudkit.exceptions.base import ValidationError
from crudkit.models.user import User
from crudkit.repositories.entity import entity_for
from crudkit.repositories.user_repository import UserRepository

from .generic_service import GenericService

logger = logging.getLogger(__name__)


class UserService(GenericService[User, int]):

    repository: UserRepository

    def __init__(self, repository: UserRepository):
        super().__init__(repository)

    def _normalized(self, user: User, operation: str) -> User:
        """
        Validate `user` and return a copy with the email normalized.

        Raises:
            ValidationError: name and/or email is blank (every offending field is listed)
        """
        invalid = []
        if not (user.name or "").strip():
            invalid.append("name")
        if not (user.email or "").strip():
            invalid.append("email")

        if invalid:
            # INFO: rejected input is an expected client error, no stack
            logger.info(
                "service.user.validation_failed",
                extra={"operation": operation, "invalid_fields": invalid},
            )
            raise ValidationError(
                f"User {' and '.join(invalid)} must not be empty",
                fields=invalid,
            )

        entity = entity_for(User)
        record = entity.to_record(user)
        record["email"] = user.email.strip().lower()
        return entity.from_record(record)

    async def create(self, model: User) -> User:
        return await super().create(self._normalized(model, "create"))

    async def update_by_id(self, model: User) -> User:
        return await super().update_by_id(self._normalized(model, "update_by_id"))

    async def find_by_email(self, email: str) -> User | None:
        return await self.repository.find_by_email(email)
