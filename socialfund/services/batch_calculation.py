"""Bulk contribution computation for every employee of an owner."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session, sessionmaker

from socialfund.core.logger import get_logger, timeit
from socialfund.domain.calculator import SalaryRecord, employee_result
from socialfund.repositories import (
    CalculationTaskRepository,
    ContributionResultRepository,
    RateTableRepository,
    SalaryRepository,
)

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class BatchOutcome:
    """What a bulk run reports back to the task orchestrator."""

    success: bool
    message: str
    processed_count: int = 0
    error_count: int = 0


def group_by_employee(records: Iterable[SalaryRecord]) -> dict[str, list[SalaryRecord]]:
    """Group records by employee id, keeping first-seen employee order."""

    groups: dict[str, list[SalaryRecord]] = {}
    for record in records:
        groups.setdefault(str(record.employee_id), []).append(record)
    return groups


class BatchContributionService:
    """Apply the contribution calculator to each employee and persist the results.

    Each employee is committed on its own, so one bad history only costs that
    employee and pollers see ``processed_employees`` advance as work lands.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def run_batch_contributions(
        self,
        owner_id: str,
        city_name: str,
        year: int,
        *,
        task_id: str | None = None,
    ) -> BatchOutcome:
        session: Session = self._session_factory()
        try:
            return self._run(session, owner_id, city_name, year, task_id)
        finally:
            session.close()

    def _run(
        self,
        session: Session,
        owner_id: str,
        city_name: str,
        year: int,
        task_id: str | None,
    ) -> BatchOutcome:
        rate_table = RateTableRepository(session).get_rate_table(year, city_name)
        if rate_table is None:
            return BatchOutcome(False, f"No rate table for {city_name} {year}")

        records = SalaryRepository(session).get_salaries_for_year(owner_id, year)
        if not records:
            return BatchOutcome(False, f"No salary records for {year}")

        results = ContributionResultRepository(session)
        tasks = CalculationTaskRepository(session)

        superseded = results.delete_for_year(owner_id, year)
        session.commit()
        if superseded:
            LOGGER.info("Replaced %d earlier results for %s", superseded, year)

        groups = group_by_employee(records)
        processed = 0
        errors = 0
        with timeit(
            f"Contributions for {city_name} {year}",
            logger=LOGGER,
            unit="employees",
            total=len(groups),
        ) as timer:
            for employee_id, history in groups.items():
                try:
                    result = employee_result(employee_id, history, rate_table, year, owner_id)
                    results.add(result)
                    if task_id is not None:
                        tasks.increment_processed(task_id, owner_id)
                    session.commit()
                except Exception:
                    session.rollback()
                    errors += 1
                    LOGGER.exception("Contribution calculation failed for employee %s", employee_id)
                    continue
                processed += 1
                timer.add()

        return BatchOutcome(
            success=True,
            message=f"Processed {processed} employees, {errors} failed",
            processed_count=processed,
            error_count=errors,
        )
