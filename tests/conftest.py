"""Shared fixtures: in-memory database, captured dispatcher and seed helpers."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable

import pytest
from sqlalchemy.orm import sessionmaker

from socialfund.core.logger import shutdown_logging
from socialfund.db.engine import create_schema
from socialfund.db.session import bound_engine, get_sessionmaker, session_scope
from socialfund.domain.calculator import RateTable, SalaryRecord
from socialfund.repositories import RateTableRepository, SalaryRepository


class DeferredDispatcher:
    """Collect submitted jobs so tests decide when they run."""

    def __init__(self) -> None:
        self.jobs: list[tuple[Callable[..., Any], tuple[Any, ...], dict[str, Any]]] = []
        self.closed = False

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> None:
        if self.closed:
            raise RuntimeError("Dispatcher has been shut down")
        self.jobs.append((fn, args, kwargs))

    def run_all(self) -> int:
        ran = 0
        while self.jobs:
            fn, args, kwargs = self.jobs.pop(0)
            fn(*args, **kwargs)
            ran += 1
        return ran

    def shutdown(self, wait: bool = True) -> None:
        self.closed = True


class SteppingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(seconds=1)
        return value


def make_rate_table(year: int = 2025, city_name: str = "Foshan", **overrides: Any) -> RateTable:
    values: dict[str, Any] = {
        "base_min": Decimal("2000"),
        "base_max": Decimal("30000"),
        "pension_company": Decimal("0.14"),
        "pension_employee": Decimal("0.08"),
        "medical_company": Decimal("0.055"),
        "medical_employee": Decimal("0.02"),
        "unemployment_company": Decimal("0.008"),
        "unemployment_employee": Decimal("0.002"),
        "injury_company": Decimal("0.002"),
        "maternity_company": Decimal("0.016"),
        "housing_fund_company": Decimal("0.12"),
        "housing_fund_employee": Decimal("0.12"),
    }
    values.update(overrides)
    return RateTable(city_name=city_name, year=year, **values)


@pytest.fixture
def session_factory() -> sessionmaker:
    factory = get_sessionmaker("sqlite://", echo=False)
    engine = bound_engine(factory)
    create_schema(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def dispatcher() -> DeferredDispatcher:
    return DeferredDispatcher()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def seed_rate_table(session_factory: sessionmaker) -> Callable[..., RateTable]:
    def _seed(year: int = 2025, city_name: str = "Foshan", **overrides: Any) -> RateTable:
        rate_table = make_rate_table(year, city_name, **overrides)
        with session_scope(session_factory) as session:
            RateTableRepository(session).upsert(rate_table)
        return rate_table

    return _seed


@pytest.fixture
def seed_salaries(session_factory: sessionmaker) -> Callable[..., None]:
    def _seed(owner_id: str, year: int, salaries: dict[str, list[Any]]) -> None:
        with session_scope(session_factory) as session:
            repository = SalaryRepository(session)
            for employee_id, amounts in salaries.items():
                for month, amount in enumerate(amounts, start=1):
                    repository.add(
                        owner_id,
                        SalaryRecord(
                            employee_id=employee_id,
                            employee_name=f"Name {employee_id}",
                            year_month=year * 100 + month,
                            amount=amount,
                        ),
                    )

    return _seed


@pytest.fixture(scope="session", autouse=True)
def _stop_logging():
    yield
    shutdown_logging()
