"""
Repository layer.

The generic pieces (contract, implementation, entity adapter, conditions) plus one repository per entity.

Usage:
    from crudkit.repositories import UserRepository, field
"""

from .conditions import (
    AllOf,
    AnyOf,
    ClauseCondition,
    Condition,
    FieldCondition,
    Not,
    Operator,
    all_of,
    any_of,
    as_condition,
    field,
)
from .entity import Entity, entity_for
from .generic_repository import GenericRepository
from .repository import DeleteOutcome, Repository
from .user_repository import UserRepository

__all__ = [
    "AllOf",
    "AnyOf",
    "ClauseCondition",
    "Condition",
    "FieldCondition",
    "Not",
    "Operator",
    "all_of",
    "any_of",
    "as_condition",
    "field",
    "Entity",
    "entity_for",
    "GenericRepository",
    "DeleteOutcome",
    "Repository",
    "UserRepository",
]
