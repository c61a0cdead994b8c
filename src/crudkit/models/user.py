from sqlalchemy import BigInteger, Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from datetime import datetime
from crudkit.database.base import Base

# 64-bit ids everywhere except sqlite, which only autoincrements an INTEGER PRIMARY KEY
BigIntId = BigInteger().with_variant(Integer(), "sqlite")


class User(Base):
    """
    Example entity wired through UserRepository / UserService.
    """
    __tablename__ = "users"

    # Database-assigned primary key
    id: Mapped[int] = mapped_column(
        BigIntId,
        primary_key=True,
        autoincrement=True,
    )

    # Display name; required (UserService rejects blank names before they reach the database)
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False
    )

    # Email address (unique; stored lowercased by UserService)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False
    )

    # Set by the database on insert
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id!r}, name={self.name!r}, email={self.email!r})>"
