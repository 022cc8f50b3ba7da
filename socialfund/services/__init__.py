"""Service layer entrypoints for calculation tasks."""

from .batch_calculation import BatchContributionService, BatchOutcome
from .dispatcher import TaskDispatcher, ThreadPoolDispatcher
from .task_orchestrator import (
    CalculationRequest,
    CalculationTaskService,
    TaskAccepted,
    TaskPage,
    TaskProgress,
)

__all__ = [
    "BatchContributionService",
    "BatchOutcome",
    "CalculationRequest",
    "CalculationTaskService",
    "TaskAccepted",
    "TaskDispatcher",
    "TaskPage",
    "TaskProgress",
    "ThreadPoolDispatcher",
]
