"""Base declarative class for SQLAlchemy models."""
from __future__ import annotations

from sqlalchemy import BigInteger, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase

ID_TYPE = BigInteger().with_variant(Integer, "sqlite")
MONEY_TYPE = Numeric(18, 2)
RATE_TYPE = Numeric(8, 6)


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""

    pass
