"""Persistence and aggregation of contribution results."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import delete, func, select

from socialfund.domain.calculator import EmployeeContribution
from socialfund.domain.numbers import round_cents
from socialfund.models import ContributionResultModel

from .base import BaseRepository


@dataclass(frozen=True)
class AggregateSummary:
    employee_count: int
    total_company_cost: Decimal
    total_employee_cost: Decimal
    total_cost: Decimal
    avg_cost_per_employee: Decimal


class ContributionResultRepository(BaseRepository):
    def add(self, result: EmployeeContribution) -> ContributionResultModel:
        row = ContributionResultModel.from_domain(result)
        self._session.add(row)
        self._session.flush()
        return row

    def delete_for_year(self, owner_id: str, year: int) -> int:
        """Remove earlier results for the owner and year; returns rows deleted."""

        result = self._session.execute(
            delete(ContributionResultModel).where(
                ContributionResultModel.owner_id == owner_id,
                ContributionResultModel.calculation_year == year,
            )
        )
        return int(result.rowcount or 0)

    def list_for_year(self, owner_id: str, year: int) -> list[ContributionResultModel]:
        return list(
            self._session.execute(
                select(ContributionResultModel)
                .where(
                    ContributionResultModel.owner_id == owner_id,
                    ContributionResultModel.calculation_year == year,
                )
                .order_by(ContributionResultModel.employee_id.asc())
            ).scalars()
        )

    def aggregate_summary(self, owner_id: str, year: int) -> AggregateSummary | None:
        """Totals across the owner's results for ``year``; ``None`` when there are none."""

        row = self._session.execute(
            select(
                func.count(ContributionResultModel.id).label("employee_count"),
                func.sum(ContributionResultModel.total_company).label("total_company"),
                func.sum(ContributionResultModel.total_employee).label("total_employee"),
            ).where(
                ContributionResultModel.owner_id == owner_id,
                ContributionResultModel.calculation_year == year,
            )
        ).one()

        employee_count = int(row.employee_count or 0)
        if employee_count == 0:
            return None

        total_company = round_cents(self._to_decimal(row.total_company))
        total_employee = round_cents(self._to_decimal(row.total_employee))
        total_cost = total_company + total_employee
        return AggregateSummary(
            employee_count=employee_count,
            total_company_cost=total_company,
            total_employee_cost=total_employee,
            total_cost=total_cost,
            avg_cost_per_employee=round_cents(total_cost / employee_count),
        )
