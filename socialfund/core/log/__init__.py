"""Logging for the contribution service: rich console, daily files, queued IO.

Loggers obtained before ``init_logging`` runs write to the console only.
``create_app`` reconfigures logging from :class:`LoggingSettings`, which adds
the daily file handler.  Records are handed to a queue on the emitting
thread and written by a listener thread, so calculation workers never block
on console or disk.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import SimpleQueue
from threading import RLock
from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .context import ContextFilter, log_context
from .timing import timeit

if TYPE_CHECKING:
    from socialfund.core.config import LoggingSettings

__all__ = [
    "LoggingConfig",
    "init_logging",
    "get_logger",
    "shutdown_logging",
    "log_context",
    "timeit",
]

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(context)s%(message)s"
)


@dataclass(frozen=True)
class LoggingConfig:
    """Runtime configuration for the logging subsystem."""

    app_name: str = "socialfund"
    level: str | int = "INFO"
    log_dir: Optional[Path] = None
    retention_days: int = 14
    console: bool = True
    rich_tracebacks: bool = True
    queue: bool = True

    @classmethod
    def from_settings(cls, settings: "LoggingSettings") -> "LoggingConfig":
        return cls(level=settings.level, log_dir=settings.log_dir)


_config_lock = RLock()
_config: LoggingConfig | None = None
_listener: QueueListener | None = None
_context_filter = ContextFilter()


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class DailyFileHandler(logging.FileHandler):
    """Write one ``socialfund_YYYY-MM-DD.log`` file per day and prune old ones."""

    def __init__(
        self,
        directory: Path,
        *,
        prefix: str = "socialfund",
        retention_days: int = 14,
        encoding: str = "utf-8",
    ) -> None:
        self.directory = directory
        self.prefix = prefix
        self.retention_days = retention_days
        self.directory.mkdir(parents=True, exist_ok=True)
        self._current_date: date = datetime.now().date()
        super().__init__(self._path_for(self._current_date), mode="a", encoding=encoding)
        self._prune()

    def _path_for(self, day: date) -> Path:
        return self.directory / f"{self.prefix}_{day.isoformat()}.log"

    def _prune(self) -> None:
        if self.retention_days <= 0:
            return
        cutoff = self._current_date - timedelta(days=self.retention_days)
        for path in self.directory.glob(f"{self.prefix}_*.log"):
            try:
                day = date.fromisoformat(path.stem[len(self.prefix) + 1 :])
            except ValueError:
                continue
            if day < cutoff:
                path.unlink(missing_ok=True)

    def emit(self, record: logging.LogRecord) -> None:
        record_date = datetime.fromtimestamp(record.created).date()
        if record_date != self._current_date:
            self._current_date = record_date
            if self.stream:
                self.stream.close()
            self.baseFilename = os.fspath(self._path_for(record_date))
            self.stream = self._open()
            self._prune()
        super().emit(record)


def _build_handlers(cfg: LoggingConfig, level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if cfg.console:
        if cfg.rich_tracebacks:
            install_rich_traceback(show_locals=False)
        console_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=cfg.rich_tracebacks,
            show_path=False,
            markup=False,
            log_time_format="%Y-%m-%d %H:%M:%S",
        )
        console_handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
        handlers.append(console_handler)

    if cfg.log_dir:
        file_handler = DailyFileHandler(Path(cfg.log_dir), retention_days=cfg.retention_days)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.addFilter(_context_filter)
    return handlers


def init_logging(config: LoggingConfig | None = None, **overrides: object) -> LoggingConfig:
    """Configure the root logger and return the active configuration.

    Calling it again with an identical configuration is a no-op; any other
    configuration replaces the handlers installed before.
    """

    cfg = replace(config or LoggingConfig(), **overrides)

    with _config_lock:
        global _config, _listener

        if _config == cfg:
            return cfg
        _teardown_locked()

        level = _parse_level(cfg.level)
        handlers = _build_handlers(cfg, level)
        root = logging.getLogger()
        root.setLevel(logging.NOTSET)

        if cfg.queue and handlers:
            log_queue: SimpleQueue = SimpleQueue()
            queue_handler = QueueHandler(log_queue)
            queue_handler.setLevel(level)
            # Context is captured here, on the thread that logged.
            queue_handler.addFilter(_context_filter)
            root.addHandler(queue_handler)
            _listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
            _listener.start()
        else:
            for handler in handlers:
                root.addHandler(handler)

        _config = cfg
        return cfg


def _teardown_locked() -> None:
    global _listener, _config
    if _listener is not None:
        _listener.stop()
        for handler in _listener.handlers:
            handler.close()
    _listener = None
    _config = None
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def shutdown_logging() -> None:
    """Flush queued records and remove every installed handler."""

    with _config_lock:
        _teardown_locked()


def get_logger(name: str | None = None) -> logging.Logger:
    with _config_lock:
        if _config is None:
            init_logging()
        return logging.getLogger(name or _config.app_name)
