"""Detached execution of calculation jobs off the request path."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable, Protocol

from socialfund.core.logger import get_logger

LOGGER = get_logger(__name__)


class TaskDispatcher(Protocol):
    """Anything that can run a job later without the caller waiting on it."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> None: ...

    def shutdown(self, wait: bool = True) -> None: ...


class ThreadPoolDispatcher:
    """Run jobs on a bounded thread pool.

    Jobs are expected to record their own failures; the done-callback only
    reports exceptions that escape a job so they never vanish silently.
    """

    def __init__(self, max_workers: int = 4, *, thread_name_prefix: str = "calc-worker") -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )
        self._lock = Lock()
        self._pending: set[Future] = set()
        self._closed = False

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("Dispatcher has been shut down")
            future = self._executor.submit(fn, *args, **kwargs)
            self._pending.add(future)
        future.add_done_callback(self._on_done)

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            LOGGER.warning("Calculation job was cancelled before it started")
            return
        error = future.exception()
        if error is not None:
            LOGGER.error(
                "Calculation job raised past its own error handling",
                exc_info=(type(error), error, error.__traceback__),
            )

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
        LOGGER.info("Calculation dispatcher stopped", extra={"wait": wait})
