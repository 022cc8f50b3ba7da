"""Storage of calculation task records, always scoped by owner."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from sqlalchemy import delete, select, update

from socialfund.domain.tasks import ACTIVE_STATUSES, CalculationTask, TaskStatus, TaskSummary
from socialfund.models import CalculationTaskModel

from .base import BaseRepository

_MUTABLE_FIELDS = frozenset(
    {
        "status",
        "processed_employees",
        "total_employees",
        "error_message",
        "summary",
        "started_at",
        "completed_at",
    }
)


class CalculationTaskRepository(BaseRepository):
    def create_task(
        self,
        *,
        task_id: str,
        owner_id: str,
        task_name: str,
        city_name: str,
        calculation_year: int,
        total_employees: int,
        created_at: datetime,
        upload_task_id: str | None = None,
    ) -> CalculationTask:
        row = CalculationTaskModel(
            id=task_id,
            owner_id=owner_id,
            task_name=task_name,
            city_name=city_name,
            calculation_year=calculation_year,
            upload_task_id=upload_task_id,
            total_employees=total_employees,
            processed_employees=0,
            status=TaskStatus.PENDING,
            created_at=created_at,
        )
        self._session.add(row)
        self._session.flush()
        return row.to_domain()

    def update_task(
        self, task_id: str, owner_id: str, patch: Mapping[str, Any]
    ) -> CalculationTask | None:
        """Apply ``patch`` to the owner's task and return the updated snapshot."""

        unknown = set(patch) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {sorted(unknown)}")

        values = dict(patch)
        if "status" in values:
            values["status"] = TaskStatus(values["status"])
        if isinstance(values.get("summary"), TaskSummary):
            values["summary"] = values["summary"].to_json()

        self._session.execute(
            update(CalculationTaskModel)
            .where(
                CalculationTaskModel.id == task_id,
                CalculationTaskModel.owner_id == owner_id,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return self.get_task(task_id, owner_id)

    def increment_processed(self, task_id: str, owner_id: str) -> bool:
        """Atomically add one processed employee, never passing the total."""

        result = self._session.execute(
            update(CalculationTaskModel)
            .where(
                CalculationTaskModel.id == task_id,
                CalculationTaskModel.owner_id == owner_id,
                CalculationTaskModel.processed_employees < CalculationTaskModel.total_employees,
            )
            .values(processed_employees=CalculationTaskModel.processed_employees + 1)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def get_task(self, task_id: str, owner_id: str) -> CalculationTask | None:
        row = self._session.execute(
            select(CalculationTaskModel)
            .where(
                CalculationTaskModel.id == task_id,
                CalculationTaskModel.owner_id == owner_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return row.to_domain() if row is not None else None

    def list_tasks(
        self, owner_id: str, status: TaskStatus | None = None
    ) -> list[CalculationTask]:
        """Return the owner's tasks, newest first, optionally filtered by status."""

        statement = select(CalculationTaskModel).where(CalculationTaskModel.owner_id == owner_id)
        if status is not None:
            statement = statement.where(CalculationTaskModel.status == TaskStatus(status))
        statement = statement.order_by(CalculationTaskModel.created_at.desc())
        return [row.to_domain() for row in self._session.execute(statement).scalars()]

    def list_active_tasks(self, owner_id: str) -> list[CalculationTask]:
        rows = self._session.execute(
            select(CalculationTaskModel)
            .where(
                CalculationTaskModel.owner_id == owner_id,
                CalculationTaskModel.status.in_(sorted(ACTIVE_STATUSES)),
            )
            .order_by(CalculationTaskModel.created_at.desc())
        ).scalars()
        return [row.to_domain() for row in rows]

    def delete_task(self, task_id: str, owner_id: str) -> bool:
        result = self._session.execute(
            delete(CalculationTaskModel).where(
                CalculationTaskModel.id == task_id,
                CalculationTaskModel.owner_id == owner_id,
            )
        )
        return bool(result.rowcount)
