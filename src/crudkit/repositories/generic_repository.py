"""
Generic repository: CRUD, conditional queries, pagination and batch mutations for any mapped class.

Entity repositories subclass it and only add what is specific to them:

    class UserRepository(GenericRepository[User, int]):
        def __init__(self, session_factory):
            super().__init__(User, session_factory)

Every call opens its own session from the injected session factory. Reads run in `read_session()`,
mutations in `transaction()`: one transaction per call, rolled back before any error propagates and
committed only when the whole unit of work succeeded. Repository instances hold no mutable state and
can be shared between concurrent callers.

Ordering is always deterministic: list and page queries end with the primary key (ascending) as the
final tie-breaker, and `find_one_condition` returns the matching row with the lowest primary key.
"""

import logging
import time
from typing import Any, Sequence

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crudkit.database.transaction import read_session, transaction
from crudkit.dto.request import PageQueryParam
from crudkit.exceptions.base import InvalidFieldError, NotFoundError

from .conditions import as_condition
from .entity import entity_for
from .repository import (
    Assignments,
    ConditionLike,
    DeleteOutcome,
    ModelType,
    PkType,
    Repository,
)

logger = logging.getLogger(__name__)


class GenericRepository(Repository[ModelType, PkType]):
    """
    Repository implementation written once against the Entity adapter.

    Type Parameters:
        ModelType: the SQLAlchemy model class this repository manages
        PkType: its primary-key type (a tuple for composite keys)
    """

    def __init__(self, model: type[ModelType], session_factory: async_sessionmaker[AsyncSession]):
        """
        Args:
            model: the mapped class itself (User, not User())
            session_factory: the shared database handle, see `crudkit.database.create_session_factory`
        """
        self.model = model
        self.entity = entity_for(model)
        self.session_factory = session_factory

    @property
    def model_name(self) -> str:
        return self.entity.name

    # =================================================================================================================
    # Query building helpers (pure, no I/O)
    # =================================================================================================================

    def _where(self, condition: ConditionLike):
        return as_condition(condition).to_clause(self.entity)

    def _ordering(self, param: PageQueryParam | None = None) -> list[Any]:
        """
        ORDER BY list for list/page queries.

        Raises:
            InvalidFieldError: `param.sort_by` is not a column of the entity
        """
        ordering: list[Any] = []
        if param is not None and param.sort_by:
            ordering.append(param.direction.apply(self.entity.column(param.sort_by)))
        ordering.extend(self.entity.pk_ordering())
        return ordering

    def _assignments(self, assignments: Assignments) -> dict[str, Any]:
        values = dict(assignments.items() if hasattr(assignments, "items") else assignments)
        self.entity.check_columns(values.keys())
        pk_targets = sorted(set(values) & set(self.entity.primary_key_names))
        if pk_targets:
            raise InvalidFieldError(
                f"Primary key column(s) of {self.model_name} cannot be assigned: {', '.join(pk_targets)}",
                fields=pk_targets,
            )
        return values

    # =================================================================================================================
    # Read Operations (Single Entity)
    # =================================================================================================================

    async def find_by_id(self, pk: PkType) -> ModelType | None:
        """
        Look up one row by primary key.

        Returns:
            The model, or None when no row has that key (absence is not an error).
        """
        ident = self.entity.normalize_pk(pk)
        async with read_session(self.session_factory, self.model_name) as session:
            entity = await session.get(self.model, ident if self.entity.is_composite else ident[0])

        logger.debug(
            "repo.find_by_id",
            extra={"model": self.model_name, "id": pk, "found": entity is not None},
        )
        return entity

    async def find_one_condition(self, condition: ConditionLike) -> ModelType | None:
        """
        First row matching `condition`, by ascending primary key. None when nothing matches.
        """
        query = select(self.model).where(self._where(condition)).order_by(*self.entity.pk_ordering()).limit(1)

        async with read_session(self.session_factory, self.model_name) as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def exists(self, pk: PkType) -> bool:
        query = select(*self.entity.primary_key).where(self.entity.pk_clause(pk)).limit(1)

        async with read_session(self.session_factory, self.model_name) as session:
            result = await session.execute(query)
            return result.first() is not None

        # Notes:
        #   - Selecting only the key columns avoids loading (and identity-mapping) a full model just to
        #     answer yes/no.

    # =================================================================================================================
    # Aggregation
    # =================================================================================================================

    async def count_condition(self, condition: ConditionLike) -> int:
        query = select(func.count()).select_from(self.model).where(self._where(condition))

        async with read_session(self.session_factory, self.model_name) as session:
            total = (await session.execute(query)).scalar_one()

        logger.debug("repo.count", extra={"model": self.model_name, "total": total})
        return int(total)

    # =================================================================================================================
    # Read Operations (Multiple Entities)
    # =================================================================================================================

    async def find_list(self) -> list[ModelType]:
        """Every row, ordered by primary key. No implicit limit: bound the table size yourself."""
        return await self.find_by_list_condition(None)

    async def find_by_list_condition(self, condition: ConditionLike) -> list[ModelType]:
        query = select(self.model).where(self._where(condition)).order_by(*self._ordering())

        async with read_session(self.session_factory, self.model_name) as session:
            result = await session.execute(query)
            entities = list(result.scalars().all())

        logger.debug("repo.find_list", extra={"model": self.model_name, "count": len(entities)})
        return entities

    async def find_page(self, param: PageQueryParam) -> tuple[list[ModelType], int]:
        return await self.find_page_condition(None, param)

    async def find_page_condition(
        self, condition: ConditionLike, param: PageQueryParam
    ) -> tuple[list[ModelType], int]:
        """
        One page of rows matching `condition`, plus the total number of matching rows.

        Args:
            condition: filter, None for all rows
            param: 0-based page_num, page_size, optional sort_by / sort_direction (ASC by default)

        Returns:
            (rows, total) where total ignores paging and len(rows) <= page_size

        Raises:
            InvalidFieldError: sort_by names no column of the entity (raised before any query runs)
            QueryError: the database failed
        """
        # resolve filter and ordering first so that bad input never reaches the database
        where = self._where(condition)
        ordering = self._ordering(param)

        count_query = select(func.count()).select_from(self.model).where(where)
        page_query = (
            select(self.model)
            .where(where)
            .order_by(*ordering)
            .offset(param.offset)
            .limit(param.page_size)
        )

        async with read_session(self.session_factory, self.model_name) as session:
            total = int((await session.execute(count_query)).scalar_one())
            if param.page_size == 0 or param.offset >= total:
                rows = []
            else:
                rows = list((await session.execute(page_query)).scalars().all())

        logger.debug(
            "repo.find_page",
            extra={
                "model": self.model_name,
                "page_num": param.page_num,
                "page_size": param.page_size,
                "sort_by": param.sort_by,
                "returned": len(rows),
                "total": total,
            },
        )
        return rows, total

        # Paging notes:
        # | Input                          | Result                                   |
        # | ------------------------------ | ---------------------------------------- |
        # | page_size=2, page_num=0, 5 rows| rows 1-2, total 5                        |
        # | page_size=2, page_num=2, 5 rows| row 5, total 5                           |
        # | page_num past the last page    | [], total unchanged                      |
        # | page_size=0                    | [], total unchanged                      |
        # | sort_by="nope"                 | InvalidFieldError, no query sent         |
        #
        #   - The count and the page are read in the same session, i.e. the same (implicit) transaction.
        #   - Appending the primary key to ORDER BY makes pages stable when the sort column has duplicates;
        #     without it OFFSET paging can skip or repeat rows.

    # =================================================================================================================
    # Create Operations
    # =================================================================================================================

    async def create(self, model: ModelType) -> ModelType:
        """
        Insert `model` in its own transaction and return the persisted row (database-assigned fields
        such as the auto-increment id and server defaults included).

        Only the attributes set on `model` are written; unset ones fall back to column defaults.
        The passed instance is not attached to any session.

        Raises:
            DuplicateError: a unique constraint rejected the row
            QueryError: any other database failure (nothing is persisted)
        """
        record = self.entity.to_record(model)
        # a None key means "let the database assign it"
        for name in self.entity.primary_key_names:
            if record.get(name, 0) is None:
                del record[name]

        logger.debug(
            "repo.create.start",
            extra={
                "model": self.model_name,
                "operation": "create",
                # keys only, values may be sensitive
                "provided_keys": sorted(record.keys()),
            },
        )

        start = time.perf_counter()
        async with transaction(self.session_factory, self.model_name) as session:
            entity = self.entity.from_record(record)
            session.add(entity)
            await session.flush()
            await session.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model_name,
                "operation": "create",
                "id": self.entity.pk_of(entity),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

        # Notes:
        #   - flush() sends the INSERT so the generated key exists; refresh() reloads server-side defaults
        #     (created_at). The commit happens when the transaction block exits without an error.
        #   - expire_on_commit=False on the session factory keeps the returned instance readable after the
        #     session is closed.

    # =================================================================================================================
    # Update Operations
    # =================================================================================================================

    async def update_by_id(self, model: ModelType) -> ModelType:
        """
        Full-row replace of the row with the same primary key, not a partial patch.

        Columns set on `model` are written as they are. Columns left unset are reset to their
        Python-side default, or NULL; server-managed columns (`created_at`) keep their stored value.
        A model previously returned by this repository carries all of its columns.

        Raises:
            InvalidFieldError: `model` has no primary key value, or leaves a required column unset
            NotFoundError: no row has that primary key
            DuplicateError / QueryError: the database rejected the update
        """
        pk = self.entity.pk_of(model)
        pk_values = self.entity.normalize_pk(pk)
        if any(value is None for value in pk_values):
            raise InvalidFieldError(
                f"update_by_id needs the primary key of {self.model_name}",
                fields=list(self.entity.primary_key_names),
            )
        values = self.entity.to_replacement(model)
        where = self.entity.pk_clause(pk)

        start = time.perf_counter()
        async with transaction(self.session_factory, self.model_name) as session:
            if values:
                stmt = (
                    update(self.model)
                    .where(where)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                matched = (await session.execute(stmt)).rowcount
            else:
                matched = (await session.execute(select(func.count()).select_from(self.model).where(where))).scalar_one()

            if not matched:
                logger.info(
                    "repo.update.not_found",
                    extra={"model": self.model_name, "operation": "update_by_id", "id": pk},
                )
                raise NotFoundError(f"{self.model_name} with id {pk} not found", fields=list(self.entity.primary_key_names))

            entity = (await session.execute(select(self.model).where(where))).scalar_one()

        logger.info(
            "repo.update.success",
            extra={
                "model": self.model_name,
                "operation": "update_by_id",
                "id": pk,
                "updated_keys": sorted(values.keys()),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    async def update_by_condition(self, condition: ConditionLike, assignments: Assignments) -> int:
        """
        Apply `assignments` (column name -> value, as a mapping or (name, value) pairs) to every row
        matching `condition`.

        Returns:
            Number of affected rows. With no assignments nothing is written and the number of matching
            rows is returned.

        Raises:
            InvalidFieldError: an assignment names an unknown or primary-key column
        """
        where = self._where(condition)
        values = self._assignments(assignments)

        async with transaction(self.session_factory, self.model_name) as session:
            if not values:
                affected = (await session.execute(select(func.count()).select_from(self.model).where(where))).scalar_one()
            else:
                stmt = (
                    update(self.model)
                    .where(where)
                    .values(**values)
                    .execution_options(synchronize_session=False)
                )
                affected = (await session.execute(stmt)).rowcount

        logger.info(
            "repo.update_batch.success",
            extra={
                "model": self.model_name,
                "operation": "update_by_condition",
                "updated_keys": sorted(values.keys()),
                "rows_affected": affected,
            },
        )
        return int(affected)

        # Notes:
        #   - synchronize_session=False: the session is fresh and holds no instances that could go stale.
        #   - rowcount is "rows matched" on PostgreSQL and SQLite; MySQL reports "rows changed" unless the
        #     client sets CLIENT_FOUND_ROWS (SQLAlchemy's MySQL dialects do by default).

    # =================================================================================================================
    # Delete Operations
    # =================================================================================================================

    async def delete(self, pk: PkType) -> DeleteOutcome:
        """Delete the row at `pk`. A missing key gives DeleteOutcome(rows_affected=0)."""
        return await self._delete_where(self.entity.pk_clause(pk), operation="delete")

    async def delete_batch(self, condition: ConditionLike) -> DeleteOutcome:
        """Delete every row matching `condition`."""
        return await self._delete_where(self._where(condition), operation="delete_batch")

    async def delete_by_ids(self, pks: Sequence[PkType]) -> DeleteOutcome:
        """Delete all rows whose primary key is in `pks`; unknown keys are ignored."""
        pks = list(pks)
        if not pks:
            return DeleteOutcome(rows_affected=0)

        if self.entity.is_composite:
            where = or_(*(self.entity.pk_clause(pk) for pk in pks))
        else:
            where = self.entity.primary_key[0].in_(pks)
        return await self._delete_where(where, operation="delete_by_ids")

    async def _delete_where(self, where: Any, *, operation: str) -> DeleteOutcome:
        stmt = delete(self.model).where(where).execution_options(synchronize_session=False)

        async with transaction(self.session_factory, self.model_name) as session:
            result = await session.execute(stmt)
            affected = result.rowcount

        if affected:
            logger.info(
                "repo.delete.success",
                extra={"model": self.model_name, "operation": operation, "rows_affected": affected},
            )
        else:
            # idempotent: nothing matched, not an error
            logger.debug(
                "repo.delete.no_rows",
                extra={"model": self.model_name, "operation": operation},
            )
        return DeleteOutcome(rows_affected=affected)
