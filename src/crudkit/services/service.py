"""
Service contract.

A service is the seam where business rules attach to an entity. It holds a repository and nothing else:
it never opens sessions or builds queries, every data access goes through the repository.
"""

from abc import ABC, abstractmethod
from typing import Generic, Sequence

from crudkit.dto.request import PageQueryParam
from crudkit.repositories.repository import (
    Assignments,
    ConditionLike,
    DeleteOutcome,
    ModelType,
    PkType,
)


class Service(ABC, Generic[ModelType, PkType]):

    @abstractmethod
    async def find_by_id(self, pk: PkType) -> ModelType | None:
        ...

    @abstractmethod
    async def find_one_condition(self, condition: ConditionLike) -> ModelType | None:
        ...

    @abstractmethod
    async def count_condition(self, condition: ConditionLike) -> int:
        ...

    @abstractmethod
    async def exists(self, pk: PkType) -> bool:
        ...

    @abstractmethod
    async def find_list(self) -> list[ModelType]:
        ...

    @abstractmethod
    async def find_by_list_condition(self, condition: ConditionLike) -> list[ModelType]:
        ...

    @abstractmethod
    async def find_page(self, param: PageQueryParam) -> tuple[list[ModelType], int]:
        ...

    @abstractmethod
    async def find_page_condition(
        self, condition: ConditionLike, param: PageQueryParam
    ) -> tuple[list[ModelType], int]:
        ...

    @abstractmethod
    async def create(self, model: ModelType) -> ModelType:
        ...

    @abstractmethod
    async def update_by_id(self, model: ModelType) -> ModelType:
        ...

    @abstractmethod
    async def update_by_condition(self, condition: ConditionLike, assignments: Assignments) -> int:
        ...

    @abstractmethod
    async def delete(self, pk: PkType) -> DeleteOutcome:
        ...

    @abstractmethod
    async def delete_batch(self, condition: ConditionLike) -> DeleteOutcome:
        ...

    @abstractmethod
    async def delete_by_ids(self, pks: Sequence[PkType]) -> DeleteOutcome:
        ...
