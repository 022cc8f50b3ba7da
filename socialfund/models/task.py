"""ORM model for background calculation tasks."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum as SQLEnum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from socialfund.domain.tasks import CalculationTask, TaskStatus, TaskSummary

from .base import Base


class CalculationTaskModel(Base):
    """One batch calculation run requested by an owner.

    Rows are always read and written through the ``(id, owner_id)`` pair.
    """

    __tablename__ = "calculation_tasks"
    __table_args__ = (
        Index("ix_calculation_tasks_owner_status", "owner_id", "status"),
        Index("ix_calculation_tasks_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    task_name: Mapped[str] = mapped_column(String(200), nullable=False)
    upload_task_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    city_name: Mapped[str] = mapped_column(String(64), nullable=False)
    calculation_year: Mapped[int] = mapped_column(Integer, nullable=False)
    total_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    processed_employees: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[TaskStatus] = mapped_column(
        SQLEnum(
            TaskStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=TaskStatus.PENDING,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_domain(self) -> CalculationTask:
        return CalculationTask(
            id=self.id,
            owner_id=self.owner_id,
            task_name=self.task_name,
            city_name=self.city_name,
            calculation_year=self.calculation_year,
            status=TaskStatus(self.status),
            total_employees=self.total_employees,
            processed_employees=self.processed_employees,
            upload_task_id=self.upload_task_id,
            error_message=self.error_message,
            summary=TaskSummary.from_json(self.summary),
            created_at=self.created_at,
            started_at=self.started_at,
            completed_at=self.completed_at,
        )
