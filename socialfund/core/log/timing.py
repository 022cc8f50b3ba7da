"""Duration and throughput logging for batch loops."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from time import perf_counter
from typing import Iterator, Optional


@dataclass
class _Timer:
    label: str
    logger: logging.Logger
    level: int
    unit: str
    expected: Optional[int]
    done: int = 0
    started: float = field(default_factory=perf_counter)

    def add(self, amount: int = 1) -> None:
        self.done += amount

    @property
    def elapsed(self) -> float:
        return perf_counter() - self.started

    def _progress(self) -> str:
        if self.expected is None:
            return f"{self.done:,} {self.unit}"
        return f"{self.done:,}/{self.expected:,} {self.unit}"

    def report(self, failed: bool) -> None:
        elapsed = self.elapsed
        if failed:
            self.logger.error(
                "%s aborted after %.2fs (%s)", self.label, elapsed, self._progress()
            )
            return
        rate = self.done / elapsed if elapsed > 0 else 0.0
        self.logger.log(
            self.level,
            "%s finished in %.2fs (%s, %.1f %s/s)",
            self.label,
            elapsed,
            self._progress(),
            rate,
            self.unit,
        )


@contextmanager
def timeit(
    label: str,
    *,
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
    unit: str = "items",
    total: Optional[int] = None,
) -> Iterator[_Timer]:
    """Log how long the block took and how many ``unit`` it reported via ``add``.

    Args:
        label: Description of the operation being timed
        logger: Logger to write to (defaults to "socialfund.timer")
        level: Logging level of the success message
        unit: Name of the counted items, e.g. "employees"
        total: Expected count, shown next to the completed count
    """
    timer = _Timer(
        label=label,
        logger=logger or logging.getLogger("socialfund.timer"),
        level=level,
        unit=unit,
        expected=total,
    )
    try:
        yield timer
    except BaseException:
        timer.report(failed=True)
        raise
    timer.report(failed=False)
