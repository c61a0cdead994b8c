"""
Entity capability: everything the generic repository needs to know about a mapped class.

The repository is written once against this adapter instead of against concrete columns:

| Capability                   | Method                                  |
| ---------------------------- | --------------------------------------- |
| primary-key access           | `primary_key`, `pk_of()`, `pk_clause()` |
| column enumeration           | `columns`, `column()`, `check_columns()`|
| model -> mutable record      | `to_record()`                           |
| mutable record -> model      | `from_record()`                         |
| full-row replacement record  | `to_replacement()`                      |

The "mutable record" is a plain dict keyed by mapped attribute names; it is what INSERT/UPDATE
statements are built from.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Any, Generic, Iterable, Mapping, TypeVar

from sqlalchemy import Column, and_, inspect as sa_inspect
from sqlalchemy.orm import InstrumentedAttribute

from crudkit.database.base import Base
from crudkit.exceptions.base import InvalidFieldError

ModelType = TypeVar("ModelType", bound=Base)


class Entity(Generic[ModelType]):
    """
    Mapper-backed description of one entity (mapped class).

    Args:
        model: the mapped class itself (User, not User())
    """

    def __init__(self, model: type[ModelType]):
        mapper = sa_inspect(model)
        self.model = model
        self.name = model.__name__

        # Only column attributes: relationships are not addressable by sort/filter/assignment.
        self._columns: dict[str, InstrumentedAttribute] = {
            attr.key: getattr(model, attr.key) for attr in mapper.column_attrs
        }
        self._table_columns: dict[str, Column] = {
            attr.key: attr.columns[0] for attr in mapper.column_attrs
        }
        self._pk_names: tuple[str, ...] = tuple(
            mapper.get_property_by_column(col).key for col in mapper.primary_key
        )

    def __repr__(self) -> str:
        return f"<Entity({self.name}, pk={self._pk_names!r})>"

    # -----------------------------------------------------------------------------------------------------------------
    # Columns
    # -----------------------------------------------------------------------------------------------------------------

    @property
    def columns(self) -> Mapping[str, InstrumentedAttribute]:
        return MappingProxyType(self._columns)

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(self._columns)

    def column(self, name: str) -> InstrumentedAttribute:
        """
        Resolve a column by name.

        Raises:
            InvalidFieldError: the entity has no such column
        """
        try:
            return self._columns[name]
        except KeyError:
            raise InvalidFieldError(f"{self.name} has no column '{name}'", fields=[name]) from None

    def check_columns(self, names: Iterable[str]) -> None:
        """Raise InvalidFieldError listing every unknown name at once."""
        unknown = sorted({n for n in names if n not in self._columns})
        if unknown:
            raise InvalidFieldError(
                f"Unknown column(s) for {self.name}: {', '.join(unknown)}", fields=unknown
            )

    # -----------------------------------------------------------------------------------------------------------------
    # Primary key
    # -----------------------------------------------------------------------------------------------------------------

    @property
    def primary_key_names(self) -> tuple[str, ...]:
        return self._pk_names

    @property
    def primary_key(self) -> tuple[InstrumentedAttribute, ...]:
        return tuple(self._columns[name] for name in self._pk_names)

    @property
    def is_composite(self) -> bool:
        return len(self._pk_names) > 1

    def normalize_pk(self, pk: Any) -> tuple[Any, ...]:
        """
        Return the key as a tuple in primary-key column order.
        Single-column keys are given as scalars, composite keys as tuples/lists.
        """
        if not self.is_composite:
            return (pk,)
        values = tuple(pk) if isinstance(pk, (tuple, list)) else (pk,)
        if len(values) != len(self._pk_names):
            raise InvalidFieldError(
                f"{self.name} primary key expects {len(self._pk_names)} value(s), got {len(values)}",
                fields=list(self._pk_names),
            )
        return values

    def pk_of(self, model: ModelType) -> Any:
        """Primary key of an instance: scalar for single keys, tuple for composite keys."""
        values = tuple(getattr(model, name) for name in self._pk_names)
        return values if self.is_composite else values[0]

    def pk_clause(self, pk: Any):
        """WHERE clause selecting exactly the row identified by `pk`."""
        values = self.normalize_pk(pk)
        return and_(*(col == value for col, value in zip(self.primary_key, values)))

    def pk_ordering(self) -> list[Any]:
        """ORDER BY primary key ascending; used as the deterministic tie-breaker."""
        return [col.asc() for col in self.primary_key]

    # -----------------------------------------------------------------------------------------------------------------
    # Model <-> mutable record
    # -----------------------------------------------------------------------------------------------------------------

    def to_record(self, model: ModelType, *, include_pk: bool = True) -> dict[str, Any]:
        """
        Convert a model into a mutable record.

        Only attributes that carry a value on the instance are included: everything for a model loaded
        from the database, only the explicitly assigned fields for a freshly built one. Leaving unset
        attributes out lets column/server defaults apply on INSERT.
        """
        state = sa_inspect(model)
        present = state.dict
        return {
            key: present[key]
            for key in self._columns
            if key in present and (include_pk or key not in self._pk_names)
        }

    def to_replacement(self, model: ModelType) -> dict[str, Any]:
        """
        Record for a full-row replace: every non-key column gets a value.

        Columns set on `model` keep their value. Unset columns fall back to their Python-side default
        (scalar, zero-argument callable or SQL expression), or to NULL. Server-managed columns
        (server_default, no Python default) are left to the database.

        Raises:
            InvalidFieldError: a NOT NULL column without any default is unset on `model`
        """
        present = sa_inspect(model).dict
        values: dict[str, Any] = {}
        missing: list[str] = []

        for key, column in self._table_columns.items():
            if key in self._pk_names:
                continue
            if key in present:
                values[key] = present[key]
                continue

            default = column.default
            if default is not None and default.is_scalar:
                values[key] = default.arg
            elif default is not None and default.is_callable:
                values[key] = default.arg(None)
            elif default is not None and default.is_clause_element:
                values[key] = default.arg
            elif default is not None or column.server_default is not None:
                # sequences and server defaults
                continue
            elif column.nullable:
                values[key] = None
            else:
                missing.append(key)

        if missing:
            raise InvalidFieldError(
                f"Replacing {self.name} requires value(s) for: {', '.join(missing)}", fields=missing
            )
        return values

    def from_record(self, record: Mapping[str, Any]) -> ModelType:
        """Build a transient model from a mutable record."""
        self.check_columns(record.keys())
        return self.model(**record)


@lru_cache(maxsize=None)
def entity_for(model: type[ModelType]) -> Entity[ModelType]:
    """Cached Entity per mapped class; mapper inspection only happens once."""
    return Entity(model)
