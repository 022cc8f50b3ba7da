"""Lifecycle rules for calculation tasks."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from .numbers import to_decimal


class TaskStatus(str, Enum):
    """Lifecycle status of a calculation task."""

    PENDING = "pending"  # Accepted, job not started yet
    PROCESSING = "processing"  # Job running
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # Stopped by the owner

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "TaskStatus") -> bool:
        return target in _TRANSITIONS[self]


TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED}
)
ACTIVE_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.PENDING, TaskStatus.PROCESSING}
)

_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset(
        {TaskStatus.PROCESSING, TaskStatus.FAILED, TaskStatus.CANCELLED}
    ),
    TaskStatus.PROCESSING: frozenset(
        {TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED}
    ),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
    TaskStatus.CANCELLED: frozenset(),
}

_STATUS_MESSAGES: dict[TaskStatus, str] = {
    TaskStatus.PENDING: "waiting to start",
    TaskStatus.PROCESSING: "in progress, {pct}%",
    TaskStatus.COMPLETED: "finished",
    TaskStatus.FAILED: "failed",
    TaskStatus.CANCELLED: "cancelled",
}


def progress(processed: int, total: int) -> int:
    """Percentage of processed employees, floored and capped at 100."""

    if total <= 0:
        return 0
    return max(0, min(100, processed * 100 // total))


def status_message(status: TaskStatus | str, pct: int) -> str:
    """Human-readable phrase shown to pollers for ``status``."""

    return _STATUS_MESSAGES[TaskStatus(status)].format(pct=pct)


@dataclass(frozen=True, slots=True)
class TaskSummary:
    """Aggregate figures recorded on a completed task."""

    employee_count: int
    total_company_cost: Decimal
    total_employee_cost: Decimal
    average_cost: Decimal

    def to_json(self) -> dict[str, Any]:
        return {
            "employee_count": self.employee_count,
            "total_company_cost": str(self.total_company_cost),
            "total_employee_cost": str(self.total_employee_cost),
            "average_cost": str(self.average_cost),
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any] | None) -> "TaskSummary | None":
        if not payload:
            return None
        return cls(
            employee_count=int(payload.get("employee_count") or 0),
            total_company_cost=to_decimal(payload.get("total_company_cost")),
            total_employee_cost=to_decimal(payload.get("total_employee_cost")),
            average_cost=to_decimal(payload.get("average_cost")),
        )


@dataclass(frozen=True, slots=True)
class CalculationTask:
    """Immutable snapshot of a stored calculation task."""

    id: str
    owner_id: str
    task_name: str
    city_name: str
    calculation_year: int
    status: TaskStatus
    total_employees: int = 0
    processed_employees: int = 0
    upload_task_id: str | None = None
    error_message: str | None = None
    summary: TaskSummary | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def progress_percentage(self) -> int:
        return progress(self.processed_employees, self.total_employees)

    @property
    def message(self) -> str:
        return status_message(self.status, self.progress_percentage)
