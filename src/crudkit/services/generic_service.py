"""
Pass-through service.

Every operation forwards verbatim to the repository. Entity services subclass it and override only the
operations that need a business rule, validating first and then calling `super()`:

    class UserService(GenericService[User, int]):
        async def create(self, model):
            self._check(model)
            return await super().create(model)

Repository errors propagate unchanged.
"""

from typing import Sequence

from crudkit.dto.request import PageQueryParam
from crudkit.dto.response import PageResponse
from crudkit.repositories.repository import (
    Assignments,
    ConditionLike,
    DeleteOutcome,
    ModelType,
    PkType,
    Repository,
)

from .service import Service


class GenericService(Service[ModelType, PkType]):
    """
    Args:
        repository: any Repository implementation (a GenericRepository subclass, or a mock in tests)
    """

    def __init__(self, repository: Repository[ModelType, PkType]):
        self.repository = repository

    async def find_by_id(self, pk: PkType) -> ModelType | None:
        return await self.repository.find_by_id(pk)

    async def find_one_condition(self, condition: ConditionLike) -> ModelType | None:
        return await self.repository.find_one_condition(condition)

    async def count_condition(self, condition: ConditionLike) -> int:
        return await self.repository.count_condition(condition)

    async def exists(self, pk: PkType) -> bool:
        return await self.repository.exists(pk)

    async def find_list(self) -> list[ModelType]:
        return await self.repository.find_list()

    async def find_by_list_condition(self, condition: ConditionLike) -> list[ModelType]:
        return await self.repository.find_by_list_condition(condition)

    async def find_page(self, param: PageQueryParam) -> tuple[list[ModelType], int]:
        return await self.repository.find_page(param)

    async def find_page_condition(
        self, condition: ConditionLike, param: PageQueryParam
    ) -> tuple[list[ModelType], int]:
        return await self.repository.find_page_condition(condition, param)

    async def create(self, model: ModelType) -> ModelType:
        return await self.repository.create(model)

    async def update_by_id(self, model: ModelType) -> ModelType:
        return await self.repository.update_by_id(model)

    async def update_by_condition(self, condition: ConditionLike, assignments: Assignments) -> int:
        return await self.repository.update_by_condition(condition, assignments)

    async def delete(self, pk: PkType) -> DeleteOutcome:
        return await self.repository.delete(pk)

    async def delete_batch(self, condition: ConditionLike) -> DeleteOutcome:
        return await self.repository.delete_batch(condition)

    async def delete_by_ids(self, pks: Sequence[PkType]) -> DeleteOutcome:
        return await self.repository.delete_by_ids(pks)

    # convenience for API layers

    async def page(self, param: PageQueryParam, condition: ConditionLike = None) -> PageResponse[ModelType]:
        """`find_page_condition` wrapped into a PageResponse."""
        rows, total = await self.find_page_condition(condition, param)
        return PageResponse.from_page(rows, total, param)
