"""Render application errors as the JSON failure envelope."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from socialfund.core.errors import AppError, ValidationError
from socialfund.core.logger import get_logger
from socialfund.schemas import ErrorBody, ErrorResponse

LOGGER = get_logger(__name__)


def _error_response(status_code: int, body: ErrorBody) -> JSONResponse:
    payload = ErrorResponse(error=body, timestamp=datetime.now(timezone.utc))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(payload.model_dump(mode="json", exclude_none=True)),
    )


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    LOGGER.warning(
        "%s %s failed: %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"code": exc.code, "status_code": exc.status_code},
    )
    return _error_response(exc.status_code, ErrorBody(**exc.to_dict()))


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    error = ValidationError(
        "Request validation failed", details=jsonable_encoder(exc.errors())
    )
    return await handle_app_error(request, error)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(
        500, ErrorBody(message="Internal server error", code=AppError.code)
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the failure envelope handlers to ``app``."""

    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
