"""Pydantic schemas for request and response payloads."""

from .calculation import (
    ApiResponse,
    BatchCalculationRequest,
    ErrorBody,
    ErrorResponse,
    TaskAcceptedData,
    TaskActionData,
    TaskDetailData,
    TaskListData,
    TaskProgressData,
    TaskSummaryData,
)

__all__ = [
    "ApiResponse",
    "BatchCalculationRequest",
    "ErrorBody",
    "ErrorResponse",
    "TaskAcceptedData",
    "TaskActionData",
    "TaskDetailData",
    "TaskListData",
    "TaskProgressData",
    "TaskSummaryData",
]
