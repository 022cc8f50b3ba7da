"""FastAPI application factory and lifecycle hooks."""
from __future__ import annotations

from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from socialfund.core.config import Settings, get_settings
from socialfund.core.logger import LoggingConfig, get_logger, init_logging
from socialfund.db.engine import create_schema
from socialfund.db.session import bound_engine, get_sessionmaker
from socialfund.middleware import register_exception_handlers
from socialfund.routers import calculate_router
from socialfund.services import CalculationTaskService, TaskDispatcher, ThreadPoolDispatcher

LOGGER = get_logger(__name__)


def create_app(
    *,
    settings: Settings | None = None,
    session_factory: sessionmaker | None = None,
    dispatcher: TaskDispatcher | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``session_factory`` and ``dispatcher`` default to the configured database
    and a thread pool sized by ``CALC_MAX_WORKERS``.  When the session factory
    is built here, missing tables are created on startup.
    """

    settings = settings or get_settings()
    init_logging(LoggingConfig.from_settings(settings.logging))

    owns_database = session_factory is None
    if session_factory is None:
        session_factory = get_sessionmaker()
    if dispatcher is None:
        dispatcher = ThreadPoolDispatcher(max_workers=settings.calculation.max_workers)

    app = FastAPI(title="Social Fund Contributions", version="0.1.0")
    register_exception_handlers(app)
    app.include_router(calculate_router)

    app.state.session_factory = session_factory
    app.state.dispatcher = dispatcher
    app.state.task_service = CalculationTaskService(
        session_factory,
        dispatcher,
        default_city=settings.calculation.default_city,
    )

    @app.on_event("startup")
    def ensure_schema() -> None:
        if not owns_database:
            return
        LOGGER.info("Ensuring database schema", extra={"database": settings.database.masked_url})
        create_schema(bound_engine(session_factory))

    @app.on_event("shutdown")
    def stop_dispatcher() -> None:
        dispatcher.shutdown(wait=False)

    LOGGER.info(
        "FastAPI application initialised",
        extra={"max_workers": settings.calculation.max_workers},
    )
    return app
