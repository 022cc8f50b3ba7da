"""ORM model for per-city, per-year contribution rate tables."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from socialfund.domain.calculator import RateTable

from .base import ID_TYPE, MONEY_TYPE, RATE_TYPE, Base


class RateTableModel(Base):
    """Contribution base bounds and rates published for a city and year."""

    __tablename__ = "rate_tables"
    __table_args__ = (UniqueConstraint("city_name", "year", name="uq_rate_tables_city_year"),)

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    city_name: Mapped[str] = mapped_column(String(64), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    base_min: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)
    base_max: Mapped[Decimal] = mapped_column(MONEY_TYPE, nullable=False)

    pension_company: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    pension_employee: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    medical_company: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    medical_employee: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    unemployment_company: Mapped[Decimal] = mapped_column(
        RATE_TYPE, nullable=False, server_default="0"
    )
    unemployment_employee: Mapped[Decimal] = mapped_column(
        RATE_TYPE, nullable=False, server_default="0"
    )
    injury_company: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    maternity_company: Mapped[Decimal] = mapped_column(RATE_TYPE, nullable=False, server_default="0")
    housing_fund_company: Mapped[Decimal] = mapped_column(
        RATE_TYPE, nullable=False, server_default="0"
    )
    housing_fund_employee: Mapped[Decimal] = mapped_column(
        RATE_TYPE, nullable=False, server_default="0"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

    def to_domain(self) -> RateTable:
        return RateTable(
            city_name=self.city_name,
            year=self.year,
            base_min=self.base_min,
            base_max=self.base_max,
            pension_company=self.pension_company,
            pension_employee=self.pension_employee,
            medical_company=self.medical_company,
            medical_employee=self.medical_employee,
            unemployment_company=self.unemployment_company,
            unemployment_employee=self.unemployment_employee,
            injury_company=self.injury_company,
            maternity_company=self.maternity_company,
            housing_fund_company=self.housing_fund_company,
            housing_fund_employee=self.housing_fund_employee,
        )
