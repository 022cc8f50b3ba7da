"""Data access layer for rate tables, salaries, results and tasks."""

from .base import BaseRepository
from .rate_tables import RateTableRepository
from .results import AggregateSummary, ContributionResultRepository
from .salaries import SalaryRepository
from .tasks import CalculationTaskRepository

__all__ = [
    "AggregateSummary",
    "BaseRepository",
    "CalculationTaskRepository",
    "ContributionResultRepository",
    "RateTableRepository",
    "SalaryRepository",
]
