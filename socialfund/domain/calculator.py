"""Contribution arithmetic for the five insurances and the housing fund.

Everything in this module is pure: callers hand in salary records and a rate
table and receive immutable value objects back.  Amounts are rounded to the
cent per category before they are summed, so a total can differ by a cent from
rounding ``base * sum(rates)`` in one step.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Sequence

from .numbers import round_cents, to_decimal

_ZERO = Decimal("0")
_ONE = Decimal("1")

CATEGORIES: tuple[str, ...] = (
    "pension",
    "medical",
    "unemployment",
    "injury",
    "maternity",
    "housing_fund",
)
# Employees never pay towards these categories, whatever the rate table says.
EMPLOYER_ONLY_CATEGORIES: frozenset[str] = frozenset({"injury", "maternity"})


@dataclass(frozen=True, slots=True)
class RateTable:
    """Contribution rates and base bounds for one city and year."""

    city_name: str
    year: int
    base_min: Decimal
    base_max: Decimal
    pension_company: Decimal = _ZERO
    pension_employee: Decimal = _ZERO
    medical_company: Decimal = _ZERO
    medical_employee: Decimal = _ZERO
    unemployment_company: Decimal = _ZERO
    unemployment_employee: Decimal = _ZERO
    injury_company: Decimal = _ZERO
    injury_employee: Decimal = _ZERO
    maternity_company: Decimal = _ZERO
    maternity_employee: Decimal = _ZERO
    housing_fund_company: Decimal = _ZERO
    housing_fund_employee: Decimal = _ZERO

    def __post_init__(self) -> None:
        for item in fields(self):
            if item.name in ("city_name", "year"):
                continue
            object.__setattr__(self, item.name, to_decimal(getattr(self, item.name)))
        if self.base_min > self.base_max:
            raise ValueError(
                f"base_min {self.base_min} exceeds base_max {self.base_max} "
                f"for {self.city_name} {self.year}"
            )
        for category in CATEGORIES:
            for side in ("company", "employee"):
                rate = self.rate(category, side)
                if not _ZERO <= rate <= _ONE:
                    raise ValueError(f"{category}_{side} rate {rate} is outside [0, 1]")

    def rate(self, category: str, side: str) -> Decimal:
        return getattr(self, f"{category}_{side}")


@dataclass(frozen=True, slots=True)
class SalaryRecord:
    """One month of pay for one employee, as uploaded by the owner."""

    employee_id: str
    employee_name: str | None
    year_month: int
    amount: Any
    department: str | None = None
    position: str | None = None


@dataclass(frozen=True, slots=True)
class ContributionBreakdown:
    """Company and employee amounts for each contribution category."""

    pension_company: Decimal
    pension_employee: Decimal
    medical_company: Decimal
    medical_employee: Decimal
    unemployment_company: Decimal
    unemployment_employee: Decimal
    injury_company: Decimal
    injury_employee: Decimal
    maternity_company: Decimal
    maternity_employee: Decimal
    housing_fund_company: Decimal
    housing_fund_employee: Decimal

    def side(self, side: str) -> dict[str, Decimal]:
        return {category: getattr(self, f"{category}_{side}") for category in CATEGORIES}

    def as_dict(self) -> dict[str, Decimal]:
        return {item.name: getattr(self, item.name) for item in fields(self)}


@dataclass(frozen=True, slots=True)
class EmployeeContribution:
    """Complete contribution result for one employee in one year."""

    employee_id: str
    employee_name: str
    owner_id: str
    calculation_year: int
    city_name: str
    avg_salary: Decimal
    contribution_base: Decimal
    breakdown: ContributionBreakdown
    total_company: Decimal
    total_employee: Decimal

    @property
    def total_all(self) -> Decimal:
        return self.total_company + self.total_employee


def average_monthly_salary(records: Sequence[SalaryRecord]) -> Decimal:
    """Mean monthly amount across ``records``; zero when there are none."""

    if not records:
        return _ZERO
    total = sum((to_decimal(record.amount) for record in records), _ZERO)
    return total / len(records)


def contribution_base(avg: Decimal, rate_table: RateTable) -> Decimal:
    """Clamp the average salary into the city's contribution base range."""

    avg = to_decimal(avg)
    return max(rate_table.base_min, min(avg, rate_table.base_max))


def contributions(base: Decimal, rate_table: RateTable) -> ContributionBreakdown:
    base = to_decimal(base)
    amounts: dict[str, Decimal] = {}
    for category in CATEGORIES:
        amounts[f"{category}_company"] = round_cents(base * rate_table.rate(category, "company"))
        if category in EMPLOYER_ONLY_CATEGORIES:
            amounts[f"{category}_employee"] = _ZERO
        else:
            amounts[f"{category}_employee"] = round_cents(
                base * rate_table.rate(category, "employee")
            )
    return ContributionBreakdown(**amounts)


def company_total(breakdown: ContributionBreakdown) -> Decimal:
    return sum(breakdown.side("company").values(), _ZERO)


def employee_total(breakdown: ContributionBreakdown) -> Decimal:
    return sum(breakdown.side("employee").values(), _ZERO)


def employee_result(
    employee_id: str,
    records: Sequence[SalaryRecord],
    rate_table: RateTable,
    year: int,
    owner_id: str,
) -> EmployeeContribution:
    """Run the full calculation for one employee's salary history."""

    avg = average_monthly_salary(records)
    base = contribution_base(avg, rate_table)
    breakdown = contributions(base, rate_table)

    name = records[0].employee_name if records else None
    if not name or not str(name).strip():
        name = f"Employee {employee_id}"

    return EmployeeContribution(
        employee_id=str(employee_id),
        employee_name=str(name),
        owner_id=owner_id,
        calculation_year=year,
        city_name=rate_table.city_name,
        avg_salary=round_cents(avg),
        contribution_base=round_cents(base),
        breakdown=breakdown,
        total_company=company_total(breakdown),
        total_employee=employee_total(breakdown),
    )
