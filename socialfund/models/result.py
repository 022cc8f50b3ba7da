"""ORM model for persisted per-employee contribution results."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from socialfund.domain.calculator import EmployeeContribution

from .base import ID_TYPE, MONEY_TYPE, Base


class ContributionResultModel(Base):
    """Contribution breakdown of one employee for one owner and year."""

    __tablename__ = "contribution_results"
    __table_args__ = (Index("ix_contribution_results_owner_year", "owner_id", "calculation_year"),)

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    employee_name: Mapped[str] = mapped_column(String(120), nullable=False)
    city_name: Mapped[str] = mapped_column(String(64), nullable=False)
    calculation_year: Mapped[int] = mapped_column(Integer, nullable=False)

    avg_salary: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    contribution_base: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)

    pension_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    pension_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    medical_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    medical_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    unemployment_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    unemployment_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    injury_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    injury_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False, server_default="0")
    maternity_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    maternity_employee: Mapped[Decimal] = mapped_column(
        MONEY_TYPE, nullable=False, server_default="0"
    )
    housing_fund_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    housing_fund_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)

    total_company: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    total_employee: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    total_all: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    @classmethod
    def from_domain(cls, result: EmployeeContribution) -> "ContributionResultModel":
        return cls(
            owner_id=result.owner_id,
            employee_id=result.employee_id,
            employee_name=result.employee_name,
            city_name=result.city_name,
            calculation_year=result.calculation_year,
            avg_salary=result.avg_salary,
            contribution_base=result.contribution_base,
            total_company=result.total_company,
            total_employee=result.total_employee,
            total_all=result.total_all,
            **result.breakdown.as_dict(),
        )
