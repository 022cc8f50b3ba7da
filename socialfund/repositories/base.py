"""Shared helpers for repositories."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from socialfund.domain.numbers import to_decimal


class BaseRepository:
    """Base repository holding the session of the current unit of work.

    Repositories never commit; transaction boundaries belong to the caller.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @staticmethod
    def _to_decimal(value: Any) -> Decimal:
        return to_decimal(value)

    @staticmethod
    def _year_month_bounds(year: int) -> tuple[int, int]:
        """Return the half-open ``YYYYMM`` range covering ``year``."""

        return year * 100, (year + 1) * 100
