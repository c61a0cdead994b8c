"""
Declarative base for every entity handled by the generic repositories.

Entities only need to subclass `Base` and declare a primary key; `crudkit.repositories.entity.Entity`
discovers columns and keys through SQLAlchemy's mapper inspection, so nothing else is required.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

# Deterministic constraint names. The integrity mapper reports them as `constraint` on QueryError.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
