"""Lifecycle management for background contribution calculation tasks.

``create_and_start`` validates a request on the caller's thread, stores a
``pending`` task and hands :meth:`CalculationTaskService.execute` to the
dispatcher.  The caller gets the task id back straight away and follows the
job by polling ``get_progress`` / ``get_task``.

The single-active-task rule per owner is a read-then-write check; two
simultaneous requests from the same owner can both pass it.  Cancelling only
changes the stored status, a job that is already running still writes its
own terminal status when it finishes.
"""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from socialfund.core.errors import (
    BusinessError,
    ConflictError,
    NotFoundError,
    ValidationError,
    error_message,
)
from socialfund.core.logger import get_logger, log_context
from socialfund.db.session import session_scope
from socialfund.domain.tasks import (
    CalculationTask,
    TaskStatus,
    TaskSummary,
    progress,
    status_message,
)
from socialfund.repositories import (
    CalculationTaskRepository,
    ContributionResultRepository,
    RateTableRepository,
    SalaryRepository,
)

from .batch_calculation import BatchContributionService
from .dispatcher import TaskDispatcher

LOGGER = get_logger(__name__)

MIN_YEAR = 2000
MAX_YEAR = 2100
MIN_TASK_ID_LENGTH = 10
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CalculationRequest:
    """Parameters of a batch calculation; missing values fall back to defaults."""

    city_name: str | None = None
    calculation_year: int | None = None
    upload_task_id: str | None = None


@dataclass(frozen=True)
class TaskAccepted:
    """Answer to ``create_and_start``: the task exists, the work has not run yet."""

    task_id: str
    task_name: str
    total_employees: int
    city_name: str
    calculation_year: int
    status: TaskStatus = TaskStatus.PENDING


@dataclass(frozen=True)
class TaskProgress:
    """Lightweight view returned to pollers."""

    task_id: str
    status: TaskStatus
    progress_percentage: int
    processed: int
    total: int
    message: str

    @classmethod
    def from_task(cls, task: CalculationTask) -> "TaskProgress":
        return cls(
            task_id=task.id,
            status=task.status,
            progress_percentage=task.progress_percentage,
            processed=task.processed_employees,
            total=task.total_employees,
            message=task.message,
        )


@dataclass(frozen=True)
class TaskPage:
    """One page of an owner's tasks."""

    items: tuple[CalculationTask, ...]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


class CalculationTaskService:
    """Create, run, observe and terminate calculation tasks for one owner at a time."""

    progress = staticmethod(progress)
    status_message = staticmethod(status_message)

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: TaskDispatcher,
        *,
        batch_service: BatchContributionService | None = None,
        default_city: str = "Foshan",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._batch = batch_service or BatchContributionService(session_factory)
        self._default_city = default_city
        self._clock = clock or _utcnow

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        with session_scope(self._session_factory) as session:
            yield session

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_and_start(self, owner_id: str, request: CalculationRequest) -> TaskAccepted:
        """Validate ``request``, store a pending task and dispatch its execution.

        Raises:
            ValidationError: Year outside 2000-2100 or malformed parameters.
            NotFoundError: No rate table for the city and year.
            ConflictError: The owner already has a pending or processing task.
            BusinessError: The owner has no salary records for the year.
        """

        city_name, year = self._resolve_parameters(request)

        with self._unit_of_work() as session:
            if RateTableRepository(session).get_rate_table(year, city_name) is None:
                raise NotFoundError(
                    f"No contribution rate table for {city_name} {year}",
                    details={"city_name": city_name, "calculation_year": year},
                )

            tasks = CalculationTaskRepository(session)
            active = tasks.list_active_tasks(owner_id)
            if active:
                raise ConflictError(
                    "A calculation task is already in progress; wait for it to finish "
                    "before starting another one",
                    details={"task_id": active[0].id, "status": active[0].status.value},
                )

            salaries = SalaryRepository(session).get_salaries_for_year(owner_id, year)
            if not salaries:
                raise BusinessError(
                    f"No salary data to calculate. Upload employee salaries for {year} first.",
                    details={"calculation_year": year},
                )
            total_employees = len({str(record.employee_id) for record in salaries})

            task = tasks.create_task(
                task_id=str(uuid4()),
                owner_id=owner_id,
                task_name=f"{city_name} {year} contribution calculation",
                city_name=city_name,
                calculation_year=year,
                total_employees=total_employees,
                upload_task_id=request.upload_task_id,
                created_at=self._clock(),
            )

        LOGGER.info(
            "Calculation task %s accepted for %d employees",
            task.id,
            total_employees,
            extra={"owner": owner_id, "city_name": city_name, "calculation_year": year},
        )

        try:
            self._dispatcher.submit(self.execute, task.id, owner_id, city_name, year)
        except Exception as exc:
            LOGGER.exception("Could not dispatch calculation task %s", task.id)
            self._record_failure(task.id, owner_id, exc, processed_count=None)
            raise

        return TaskAccepted(
            task_id=task.id,
            task_name=task.task_name,
            total_employees=total_employees,
            city_name=city_name,
            calculation_year=year,
        )

    def _resolve_parameters(self, request: CalculationRequest) -> tuple[str, int]:
        year = request.calculation_year
        if year is None:
            year = self._clock().year
        if isinstance(year, bool) or not isinstance(year, int):
            raise ValidationError(
                "calculation_year must be an integer",
                details={"field": "calculation_year", "value": year},
            )
        if year < MIN_YEAR or year > MAX_YEAR:
            raise ValidationError(
                f"Year must be between {MIN_YEAR} and {MAX_YEAR}",
                details={"field": "calculation_year", "value": year},
            )

        city_name = request.city_name
        if city_name is None:
            city_name = self._default_city
        if not isinstance(city_name, str) or not city_name.strip():
            raise ValidationError(
                "city_name must be a non-empty string",
                details={"field": "city_name", "value": city_name},
            )
        return city_name.strip(), year

    # ------------------------------------------------------------------
    # Detached execution
    # ------------------------------------------------------------------

    def execute(self, task_id: str, owner_id: str, city_name: str, year: int) -> None:
        """Run a task to a terminal status. Never raises."""

        with log_context.scope(task_id=task_id, owner=owner_id):
            processed_count: int | None = None
            try:
                LOGGER.info("Starting calculation task")
                self._patch(
                    task_id,
                    owner_id,
                    status=TaskStatus.PROCESSING,
                    started_at=self._clock(),
                    processed_employees=0,
                )

                outcome = self._batch.run_batch_contributions(
                    owner_id, city_name, year, task_id=task_id
                )
                if outcome is None:
                    raise RuntimeError("Bulk calculation returned no outcome")
                if not outcome.success:
                    raise RuntimeError(outcome.message or "Bulk calculation failed")
                processed_count = outcome.processed_count
                LOGGER.info(
                    "Bulk calculation finished: %d processed, %d failed",
                    outcome.processed_count,
                    outcome.error_count,
                )

                with self._unit_of_work() as session:
                    aggregate = ContributionResultRepository(session).aggregate_summary(
                        owner_id, year
                    )
                if aggregate is None:
                    raise RuntimeError("Calculation summary is unavailable")

                summary = TaskSummary(
                    employee_count=aggregate.employee_count,
                    total_company_cost=aggregate.total_company_cost,
                    total_employee_cost=aggregate.total_employee_cost,
                    average_cost=aggregate.avg_cost_per_employee,
                )
                note = None
                if outcome.error_count > 0:
                    note = (
                        f"Calculation finished, but {outcome.error_count} "
                        "employee records failed"
                    )
                self._complete(task_id, owner_id, processed_count, summary, note)
                LOGGER.info("Calculation task completed")
            except Exception as exc:
                LOGGER.exception("Calculation task failed")
                self._record_failure(task_id, owner_id, exc, processed_count)

    def _complete(
        self,
        task_id: str,
        owner_id: str,
        processed_count: int,
        summary: TaskSummary,
        note: str | None,
    ) -> None:
        with self._unit_of_work() as session:
            tasks = CalculationTaskRepository(session)
            current = tasks.get_task(task_id, owner_id)
            if current is None:
                raise RuntimeError(f"Task {task_id} disappeared while running")
            tasks.update_task(
                task_id,
                owner_id,
                {
                    "status": TaskStatus.COMPLETED,
                    "processed_employees": min(processed_count, current.total_employees),
                    "completed_at": self._clock(),
                    "summary": summary,
                    "error_message": note,
                },
            )

    def _record_failure(
        self,
        task_id: str,
        owner_id: str,
        error: BaseException,
        processed_count: int | None,
    ) -> None:
        patch: dict[str, object] = {
            "status": TaskStatus.FAILED,
            "error_message": error_message(error),
            "completed_at": self._clock(),
        }
        try:
            with self._unit_of_work() as session:
                tasks = CalculationTaskRepository(session)
                if processed_count is not None:
                    current = tasks.get_task(task_id, owner_id)
                    total = current.total_employees if current else processed_count
                    patch["processed_employees"] = min(processed_count, total)
                tasks.update_task(task_id, owner_id, patch)
        except Exception:
            LOGGER.exception("Could not record failure of calculation task %s", task_id)

    def _patch(self, task_id: str, owner_id: str, **patch: object) -> CalculationTask | None:
        with self._unit_of_work() as session:
            return CalculationTaskRepository(session).update_task(task_id, owner_id, patch)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_task(self, task_id: str, owner_id: str) -> CalculationTask:
        """Return the owner's task or raise ``NotFoundError``."""

        if not task_id or len(task_id) < MIN_TASK_ID_LENGTH:
            raise NotFoundError("Task not found")
        with self._unit_of_work() as session:
            task = CalculationTaskRepository(session).get_task(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def get_progress(self, task_id: str, owner_id: str) -> TaskProgress:
        return TaskProgress.from_task(self.get_task(task_id, owner_id))

    def list_tasks(
        self,
        owner_id: str,
        status: TaskStatus | str | None = None,
        *,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> TaskPage:
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(
                f"limit must be between 1 and {MAX_PAGE_SIZE}",
                details={"field": "limit", "value": limit},
            )
        if offset < 0:
            raise ValidationError(
                "offset must not be negative", details={"field": "offset", "value": offset}
            )
        status_filter: TaskStatus | None = None
        if status is not None:
            try:
                status_filter = TaskStatus(status)
            except ValueError:
                allowed = ", ".join(member.value for member in TaskStatus)
                raise ValidationError(
                    f"Invalid status, expected one of: {allowed}",
                    details={"field": "status", "value": status},
                ) from None

        with self._unit_of_work() as session:
            tasks = CalculationTaskRepository(session).list_tasks(owner_id, status_filter)
        return TaskPage(
            items=tuple(tasks[offset : offset + limit]),
            total=len(tasks),
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------
    # Termination
    # ------------------------------------------------------------------

    def cancel(self, task_id: str, owner_id: str) -> CalculationTask:
        """Mark a pending or processing task as cancelled.

        A job that is already running is not interrupted.
        """

        task = self.get_task(task_id, owner_id)
        if not task.status.can_transition_to(TaskStatus.CANCELLED):
            raise BusinessError(
                "Only pending or processing tasks can be cancelled",
                details={"status": task.status.value},
            )
        with self._unit_of_work() as session:
            updated = CalculationTaskRepository(session).update_task(
                task_id,
                owner_id,
                {"status": TaskStatus.CANCELLED, "completed_at": self._clock()},
            )
        LOGGER.info("Calculation task %s cancelled", task_id, extra={"owner": owner_id})
        return updated or task

    def delete(self, task_id: str, owner_id: str) -> None:
        """Delete a task that has reached a terminal status."""

        task = self.get_task(task_id, owner_id)
        if not task.status.is_terminal:
            raise BusinessError(
                "Cancel the task or wait for it to finish before deleting it",
                details={"status": task.status.value},
            )
        with self._unit_of_work() as session:
            CalculationTaskRepository(session).delete_task(task_id, owner_id)
        LOGGER.info("Calculation task %s deleted", task_id, extra={"owner": owner_id})
