"""Database models for the contribution domain."""
from __future__ import annotations

from .base import Base
from .rate_table import RateTableModel
from .result import ContributionResultModel
from .salary import SalaryModel
from .task import CalculationTaskModel

__all__ = [
    "Base",
    "CalculationTaskModel",
    "ContributionResultModel",
    "RateTableModel",
    "SalaryModel",
]
