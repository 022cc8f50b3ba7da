"""Request and response payloads for the calculation task API."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field, field_serializer

from socialfund.domain.tasks import CalculationTask, TaskStatus, TaskSummary
from socialfund.services import TaskAccepted, TaskPage, TaskProgress

DataT = TypeVar("DataT")


class BatchCalculationRequest(BaseModel):
    """Body of ``POST /api/calculate/batch``; every field is optional."""

    city_name: str | None = Field(default=None, max_length=50)
    calculation_year: int | None = None
    upload_task_id: str | None = Field(default=None, max_length=64)


class TaskAcceptedData(BaseModel):
    task_id: str
    task_name: str
    status: TaskStatus
    total_employees: int
    city_name: str
    calculation_year: int
    message: str

    @classmethod
    def from_domain(cls, accepted: TaskAccepted) -> "TaskAcceptedData":
        return cls(
            task_id=accepted.task_id,
            task_name=accepted.task_name,
            status=accepted.status,
            total_employees=accepted.total_employees,
            city_name=accepted.city_name,
            calculation_year=accepted.calculation_year,
            message="Calculation task created, processing in the background",
        )


class TaskSummaryData(BaseModel):
    """Aggregate figures of a completed task."""

    employee_count: int = 0
    total_company_cost: Decimal = Decimal("0")
    total_employee_cost: Decimal = Decimal("0")
    average_cost: Decimal = Decimal("0")

    @field_serializer("total_company_cost", "total_employee_cost", "average_cost")
    def _serialize_decimal(self, value: Decimal) -> str:
        return str(value)

    @classmethod
    def from_domain(cls, summary: TaskSummary) -> "TaskSummaryData":
        return cls(
            employee_count=summary.employee_count,
            total_company_cost=summary.total_company_cost,
            total_employee_cost=summary.total_employee_cost,
            average_cost=summary.average_cost,
        )


class TaskDetailData(BaseModel):
    """Full task record plus derived progress fields."""

    task_id: str
    task_name: str
    city_name: str
    calculation_year: int
    status: TaskStatus
    progress_percentage: int
    processed_employees: int
    total_employees: int
    message: str
    error_message: str | None = None
    summary: TaskSummaryData | None = None
    upload_task_id: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def from_domain(cls, task: CalculationTask) -> "TaskDetailData":
        return cls(
            task_id=task.id,
            task_name=task.task_name,
            city_name=task.city_name,
            calculation_year=task.calculation_year,
            status=task.status,
            progress_percentage=task.progress_percentage,
            processed_employees=task.processed_employees,
            total_employees=task.total_employees,
            message=task.message,
            error_message=task.error_message,
            summary=TaskSummaryData.from_domain(task.summary) if task.summary else None,
            upload_task_id=task.upload_task_id,
            created_at=task.created_at,
            started_at=task.started_at,
            completed_at=task.completed_at,
        )


class TaskListData(BaseModel):
    tasks: list[TaskDetailData]
    total: int
    limit: int
    offset: int
    has_more: bool

    @classmethod
    def from_domain(cls, page: TaskPage) -> "TaskListData":
        return cls(
            tasks=[TaskDetailData.from_domain(task) for task in page.items],
            total=page.total,
            limit=page.limit,
            offset=page.offset,
            has_more=page.has_more,
        )


class TaskProgressData(BaseModel):
    """Lightweight payload for progress polling."""

    task_id: str
    status: TaskStatus
    progress_percentage: int
    processed: int
    total: int
    message: str

    @classmethod
    def from_domain(cls, progress: TaskProgress) -> "TaskProgressData":
        return cls(
            task_id=progress.task_id,
            status=progress.status,
            progress_percentage=progress.progress_percentage,
            processed=progress.processed,
            total=progress.total,
            message=progress.message,
        )


class TaskActionData(BaseModel):
    task_id: str
    status: TaskStatus | None = None
    message: str


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope shared by every endpoint."""

    success: bool = True
    data: DataT
    timestamp: datetime


class ErrorBody(BaseModel):
    message: str
    code: str
    details: Any = None


class ErrorResponse(BaseModel):
    """Failure envelope rendered by the exception handlers."""

    success: bool = False
    error: ErrorBody
    timestamp: datetime
