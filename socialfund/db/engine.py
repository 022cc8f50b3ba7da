"""Database engine factories."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from socialfund.core.config import get_settings
from socialfund.core.logger import get_logger

LOGGER = get_logger(__name__)


def create_sync_engine(url: str | None = None, **kwargs) -> Engine:
    """Create a synchronous SQLAlchemy engine using configured defaults.

    SQLite URLs are shared across the worker threads, so the thread check is
    disabled and in-memory databases are pinned to a single connection.
    """

    settings = get_settings()
    resolved_url = url or settings.database.sqlalchemy_url

    options = dict(kwargs)
    options.setdefault("echo", settings.sqlalchemy_echo)

    parsed = make_url(resolved_url)
    if parsed.get_backend_name() == "sqlite":
        connect_args = dict(options.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        options["connect_args"] = connect_args
        if parsed.database in (None, "", ":memory:"):
            options.setdefault("poolclass", StaticPool)
    else:
        options.setdefault("pool_pre_ping", True)

    LOGGER.debug(
        "Creating SQLAlchemy engine",
        extra={"url": parsed.render_as_string(hide_password=True), "options": sorted(options)},
    )
    return create_engine(resolved_url, **options)


def create_schema(engine: Engine) -> None:
    """Create any missing tables for the ORM models."""

    # Import locally so every model is registered on the metadata.
    from socialfund.models import Base

    Base.metadata.create_all(engine)
    LOGGER.info("Database schema ensured", extra={"tables": sorted(Base.metadata.tables)})
