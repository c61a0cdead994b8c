"""
Repository contract.

Every entity repository exposes the same set of async operations. `GenericRepository` implements them
once for any mapped class; entity repositories subclass it and add bespoke queries
(e.g. `UserRepository.find_by_email`).

Conditions may be a `Condition`, a raw SQLAlchemy boolean expression, or None (no filter).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Iterable, Mapping, Sequence, TypeVar

from sqlalchemy.sql.elements import ColumnElement

from crudkit.database.base import Base
from crudkit.dto.request import PageQueryParam

from .conditions import Condition

ModelType = TypeVar("ModelType", bound=Base)
PkType = TypeVar("PkType")

ConditionLike = Condition | ColumnElement[bool] | None
Assignments = Mapping[str, Any] | Iterable[tuple[str, Any]]


@dataclass(frozen=True)
class DeleteOutcome:
    """Result of a delete. Deleting a missing key is not an error: rows_affected is 0."""
    rows_affected: int


class Repository(ABC, Generic[ModelType, PkType]):

    # -- reads ---------------------------------------------------------------------------------------------------------

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

    # -- mutations -----------------------------------------------------------------------------------------------------

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
