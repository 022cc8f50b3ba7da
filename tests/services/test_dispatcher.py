import logging
import threading

import pytest

from socialfund.services.dispatcher import ThreadPoolDispatcher


def test_jobs_run_off_the_calling_thread() -> None:
    dispatcher = ThreadPoolDispatcher(max_workers=1)
    seen: list[str] = []
    done = threading.Event()

    def job(value: str) -> None:
        seen.append(f"{value}:{threading.current_thread().name}")
        done.set()

    dispatcher.submit(job, "first")
    assert done.wait(timeout=5)
    dispatcher.shutdown(wait=True)

    assert seen[0].startswith("first:calc-worker")
    assert dispatcher.pending == 0


def test_submit_after_shutdown_is_refused() -> None:
    dispatcher = ThreadPoolDispatcher(max_workers=1)
    dispatcher.shutdown()

    with pytest.raises(RuntimeError):
        dispatcher.submit(lambda: None)


def test_escaped_exceptions_are_logged(caplog) -> None:
    dispatcher = ThreadPoolDispatcher(max_workers=1)

    def job() -> None:
        raise ValueError("escaped")

    with caplog.at_level(logging.ERROR, logger="socialfund.services.dispatcher"):
        dispatcher.submit(job)
        dispatcher.shutdown(wait=True)

    assert any("raised past its own error handling" in r.getMessage() for r in caplog.records)
