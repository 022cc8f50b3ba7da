"""Session factories and the unit-of-work scope used by services."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .engine import create_sync_engine


def get_sessionmaker(url: str | None = None, **kwargs) -> sessionmaker:
    """Return a ``sessionmaker`` bound to a new engine for ``url``.

    Objects stay readable after commit because snapshots are built from them
    once the session is already closed.
    """

    engine = create_sync_engine(url, **kwargs)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def bound_engine(factory: sessionmaker) -> Engine:
    """Return the engine ``factory`` hands to its sessions."""

    return factory.kw["bind"]


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Open a session from ``factory``, commit on success and always close it."""

    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
