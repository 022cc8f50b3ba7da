"""Lookup of published contribution rate tables."""
from __future__ import annotations

from sqlalchemy import select

from socialfund.domain.calculator import RateTable
from socialfund.models import RateTableModel

from .base import BaseRepository


class RateTableRepository(BaseRepository):
    def get_rate_table(self, year: int, city_name: str) -> RateTable | None:
        row = self._session.execute(
            select(RateTableModel).where(
                RateTableModel.year == year,
                RateTableModel.city_name == city_name,
            )
        ).scalar_one_or_none()
        return row.to_domain() if row is not None else None

    def upsert(self, rate_table: RateTable) -> RateTableModel:
        """Insert or overwrite the rate table for its city and year."""

        row = self._session.execute(
            select(RateTableModel).where(
                RateTableModel.year == rate_table.year,
                RateTableModel.city_name == rate_table.city_name,
            )
        ).scalar_one_or_none()
        if row is None:
            row = RateTableModel(city_name=rate_table.city_name, year=rate_table.year)
            self._session.add(row)
        row.base_min = rate_table.base_min
        row.base_max = rate_table.base_max
        for name in (
            "pension_company",
            "pension_employee",
            "medical_company",
            "medical_employee",
            "unemployment_company",
            "unemployment_employee",
            "injury_company",
            "maternity_company",
            "housing_fund_company",
            "housing_fund_employee",
        ):
            setattr(row, name, getattr(rate_table, name))
        self._session.flush()
        return row
