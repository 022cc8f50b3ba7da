"""Pure domain logic: contribution arithmetic and task lifecycle rules."""

from .calculator import (
    ContributionBreakdown,
    EmployeeContribution,
    RateTable,
    SalaryRecord,
    average_monthly_salary,
    company_total,
    contribution_base,
    contributions,
    employee_result,
    employee_total,
)
from .numbers import round_cents, to_decimal
from .tasks import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    CalculationTask,
    TaskStatus,
    TaskSummary,
    progress,
    status_message,
)

__all__ = [
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
    "CalculationTask",
    "TaskSummary",
    "ContributionBreakdown",
    "EmployeeContribution",
    "RateTable",
    "SalaryRecord",
    "TaskStatus",
    "average_monthly_salary",
    "company_total",
    "contribution_base",
    "contributions",
    "employee_result",
    "employee_total",
    "progress",
    "round_cents",
    "status_message",
    "to_decimal",
]
