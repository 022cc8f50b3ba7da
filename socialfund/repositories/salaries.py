"""Read access to uploaded salary records."""
from __future__ import annotations

from sqlalchemy import select

from socialfund.domain.calculator import SalaryRecord
from socialfund.models import SalaryModel

from .base import BaseRepository


class SalaryRepository(BaseRepository):
    def get_salaries_for_year(self, owner_id: str, year: int) -> list[SalaryRecord]:
        """Return the owner's records for ``year`` ordered by month."""

        start, end = self._year_month_bounds(year)
        rows = self._session.execute(
            select(SalaryModel)
            .where(
                SalaryModel.owner_id == owner_id,
                SalaryModel.year_month >= start,
                SalaryModel.year_month < end,
            )
            .order_by(SalaryModel.year_month.asc(), SalaryModel.id.asc())
        ).scalars()
        return [row.to_domain() for row in rows]

    def add(self, owner_id: str, record: SalaryRecord) -> SalaryModel:
        row = SalaryModel(
            owner_id=owner_id,
            employee_id=record.employee_id,
            employee_name=record.employee_name,
            year_month=record.year_month,
            salary_amount=self._to_decimal(record.amount),
            department=record.department,
            position=record.position,
        )
        self._session.add(row)
        return row
