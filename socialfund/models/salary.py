"""ORM model for uploaded monthly salary records."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from socialfund.domain.calculator import SalaryRecord

from .base import ID_TYPE, MONEY_TYPE, Base


class SalaryModel(Base):
    """One month of pay for one employee, owned by the uploading user.

    ``year_month`` is stored as the integer ``YYYYMM``.
    """

    __tablename__ = "salaries"
    __table_args__ = (Index("ix_salaries_owner_year_month", "owner_id", "year_month"),)

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    employee_id: Mapped[str] = mapped_column(String(64), nullable=False)
    employee_name: Mapped[str | None] = mapped_column(String(120), nullable=True)
    year_month: Mapped[int] = mapped_column(Integer, nullable=False)
    salary_amount: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True)
    position: Mapped[str | None] = mapped_column(String(120), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    def to_domain(self) -> SalaryRecord:
        return SalaryRecord(
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            year_month=self.year_month,
            amount=self.salary_amount,
            department=self.department,
            position=self.position,
        )
