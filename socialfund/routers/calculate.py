"""Routes for starting and following batch contribution calculations."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, Header, Query, Request, status

from socialfund.core.errors import AuthenticationError
from socialfund.schemas import (
    ApiResponse,
    BatchCalculationRequest,
    TaskAcceptedData,
    TaskActionData,
    TaskDetailData,
    TaskListData,
    TaskProgressData,
)
from socialfund.services import CalculationRequest, CalculationTaskService

router = APIRouter(prefix="/api/calculate", tags=["calculate"])


def get_current_owner(x_owner_id: str | None = Header(default=None)) -> str:
    """Return the owner id sent in the ``X-Owner-Id`` header."""

    owner_id = (x_owner_id or "").strip()
    if not owner_id:
        raise AuthenticationError("Missing X-Owner-Id header")
    return owner_id


def get_task_service(request: Request) -> CalculationTaskService:
    """Return the task service created with the application."""

    return request.app.state.task_service


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post(
    "/batch",
    response_model=ApiResponse[TaskAcceptedData],
    status_code=status.HTTP_201_CREATED,
    summary="Start a batch contribution calculation",
)
def start_batch_calculation(
    payload: BatchCalculationRequest | None = Body(default=None),
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskAcceptedData]:
    payload = payload or BatchCalculationRequest()
    accepted = service.create_and_start(
        owner_id,
        CalculationRequest(
            city_name=payload.city_name,
            calculation_year=payload.calculation_year,
            upload_task_id=payload.upload_task_id,
        ),
    )
    return ApiResponse[TaskAcceptedData](
        data=TaskAcceptedData.from_domain(accepted), timestamp=_now()
    )


@router.get("/tasks", response_model=ApiResponse[TaskListData], summary="List calculation tasks")
def list_tasks(
    status_filter: str | None = Query(default=None, alias="status"),
    limit: int = 20,
    offset: int = 0,
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskListData]:
    page = service.list_tasks(owner_id, status_filter, limit=limit, offset=offset)
    return ApiResponse[TaskListData](data=TaskListData.from_domain(page), timestamp=_now())


@router.get(
    "/tasks/{task_id}",
    response_model=ApiResponse[TaskDetailData],
    summary="Calculation task details",
)
def read_task(
    task_id: str,
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskDetailData]:
    task = service.get_task(task_id, owner_id)
    return ApiResponse[TaskDetailData](data=TaskDetailData.from_domain(task), timestamp=_now())


@router.post(
    "/tasks/{task_id}/cancel",
    response_model=ApiResponse[TaskActionData],
    summary="Cancel a calculation task",
)
def cancel_task(
    task_id: str,
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskActionData]:
    task = service.cancel(task_id, owner_id)
    return ApiResponse[TaskActionData](
        data=TaskActionData(task_id=task.id, status=task.status, message="Task cancelled"),
        timestamp=_now(),
    )


@router.delete(
    "/tasks/{task_id}",
    response_model=ApiResponse[TaskActionData],
    summary="Delete a finished calculation task",
)
def delete_task(
    task_id: str,
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskActionData]:
    service.delete(task_id, owner_id)
    return ApiResponse[TaskActionData](
        data=TaskActionData(task_id=task_id, message="Task deleted"), timestamp=_now()
    )


@router.get(
    "/progress/{task_id}",
    response_model=ApiResponse[TaskProgressData],
    summary="Poll calculation progress",
)
def read_progress(
    task_id: str,
    owner_id: str = Depends(get_current_owner),
    service: CalculationTaskService = Depends(get_task_service),
) -> ApiResponse[TaskProgressData]:
    progress = service.get_progress(task_id, owner_id)
    return ApiResponse[TaskProgressData](
        data=TaskProgressData.from_domain(progress), timestamp=_now()
    )
