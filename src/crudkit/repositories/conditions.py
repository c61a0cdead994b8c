"""
Filter conditions.

A Condition is a composable predicate over one entity. It stays unbound (column names as strings) until
the repository turns it into a SQLAlchemy clause with `to_clause(entity)`; unknown columns surface as
InvalidFieldError at that point, before any statement is sent.

    cond = field("is_active").eq(True) & field("email").ilike("%@example.com")
    rows = await repo.find_by_list_condition(cond)

Raw SQLAlchemy expressions are accepted too (`User.name == "ada"`), see `as_condition()`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from sqlalchemy import and_, false, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

if TYPE_CHECKING:
    from .entity import Entity


class Operator(str, Enum):
    EQ = "eq"
    NE = "ne"
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


# operator -> (column, value) -> clause
_OPERATORS = {
    Operator.EQ: lambda col, v: col == v,
    Operator.NE: lambda col, v: col != v,
    Operator.LT: lambda col, v: col < v,
    Operator.LE: lambda col, v: col <= v,
    Operator.GT: lambda col, v: col > v,
    Operator.GE: lambda col, v: col >= v,
    Operator.LIKE: lambda col, v: col.like(v),
    Operator.ILIKE: lambda col, v: col.ilike(v),
    Operator.IN: lambda col, v: col.in_(v),
    Operator.NOT_IN: lambda col, v: col.not_in(v),
    Operator.IS_NULL: lambda col, _: col.is_(None),
    Operator.IS_NOT_NULL: lambda col, _: col.is_not(None),
}


class Condition(ABC):
    """Base class of every filter; supports `&`, `|` and `~`."""

    @abstractmethod
    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        ...

    def __and__(self, other: Condition | ColumnElement) -> AllOf:
        return AllOf([self, as_condition(other)])

    def __or__(self, other: Condition | ColumnElement) -> AnyOf:
        return AnyOf([self, as_condition(other)])

    def __invert__(self) -> Not:
        return Not(self)


class FieldCondition(Condition):
    """`<column> <op> <value>` on a single column."""

    def __init__(self, name: str, op: Operator | str, value: Any = None):
        self.name = name
        self.op = Operator(op)
        if self.op in (Operator.IN, Operator.NOT_IN):
            value = list(value)
        self.value = value

    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        return _OPERATORS[self.op](entity.column(self.name), self.value)

    def __repr__(self) -> str:
        return f"FieldCondition({self.name!r}, {self.op.value!r}, {self.value!r})"


class AllOf(Condition):
    """Conjunction. An empty AllOf matches every row."""

    def __init__(self, conditions: Iterable[Condition]):
        self.conditions = list(conditions)

    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        if not self.conditions:
            return true()
        return and_(*(c.to_clause(entity) for c in self.conditions))

    def __and__(self, other: Condition | ColumnElement) -> AllOf:
        # flatten chains like a & b & c
        return AllOf([*self.conditions, as_condition(other)])


class AnyOf(Condition):
    """Disjunction. An empty AnyOf matches nothing."""

    def __init__(self, conditions: Iterable[Condition]):
        self.conditions = list(conditions)

    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        if not self.conditions:
            return false()
        return or_(*(c.to_clause(entity) for c in self.conditions))

    def __or__(self, other: Condition | ColumnElement) -> AnyOf:
        return AnyOf([*self.conditions, as_condition(other)])


class Not(Condition):
    def __init__(self, condition: Condition):
        self.condition = condition

    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        return not_(self.condition.to_clause(entity))


class ClauseCondition(Condition):
    """Wraps an already-built SQLAlchemy boolean expression."""

    def __init__(self, clause: ColumnElement[bool]):
        self.clause = clause

    def to_clause(self, entity: Entity) -> ColumnElement[bool]:
        return self.clause


class _FieldRef:
    """Builder returned by `field()`."""

    def __init__(self, name: str):
        self.name = name

    def eq(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.EQ, value)

    def ne(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.NE, value)

    def lt(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.LT, value)

    def le(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.LE, value)

    def gt(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.GT, value)

    def ge(self, value: Any) -> FieldCondition:
        return FieldCondition(self.name, Operator.GE, value)

    def like(self, pattern: str) -> FieldCondition:
        return FieldCondition(self.name, Operator.LIKE, pattern)

    def ilike(self, pattern: str) -> FieldCondition:
        return FieldCondition(self.name, Operator.ILIKE, pattern)

    def in_(self, values: Iterable[Any]) -> FieldCondition:
        return FieldCondition(self.name, Operator.IN, values)

    def not_in(self, values: Iterable[Any]) -> FieldCondition:
        return FieldCondition(self.name, Operator.NOT_IN, values)

    def is_null(self) -> FieldCondition:
        return FieldCondition(self.name, Operator.IS_NULL)

    def is_not_null(self) -> FieldCondition:
        return FieldCondition(self.name, Operator.IS_NOT_NULL)


def field(name: str) -> _FieldRef:
    return _FieldRef(name)


def all_of(*conditions: Condition | ColumnElement) -> AllOf:
    return AllOf(as_condition(c) for c in conditions)


def any_of(*conditions: Condition | ColumnElement) -> AnyOf:
    return AnyOf(as_condition(c) for c in conditions)


def as_condition(value: Condition | ColumnElement | None) -> Condition:
    """
    Normalize what callers pass as a filter.

    None means "no filter" and becomes an empty AllOf (matches everything).
    """
    if value is None:
        return AllOf([])
    if isinstance(value, Condition):
        return value
    if isinstance(value, ColumnElement):
        return ClauseCondition(value)
    raise TypeError(f"Expected a Condition or SQLAlchemy expression, got {type(value).__name__}")
