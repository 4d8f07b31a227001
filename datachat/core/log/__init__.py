"""Service-wide logging with rich console output and request-scoped context."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import SimpleQueue
from threading import RLock
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback

from .context import ContextFilter, log_context
from .timing import timeit

__all__ = [
    "init_logging",
    "get_logger",
    "log_context",
    "timeit",
]


def _default_log_dir() -> Optional[Path]:
    value = os.getenv("LOG_DIR", "logs")
    return Path(value) if value else None


@dataclass
class LoggingConfig:
    """Runtime configuration for the logging subsystem."""

    app_name: str = "datachat"
    level: str | int = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_dir: Optional[Path] = field(default_factory=_default_log_dir)
    console: bool = True
    rich_tracebacks: bool = True
    queue: bool = True


_config_lock = RLock()
_config: LoggingConfig | None = None
_listener: QueueListener | None = None
_context_filter = ContextFilter()


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).upper(), logging.INFO)


class DailyFileHandler(logging.FileHandler):
    """Write one log file per day into ``directory``."""

    def __init__(
        self,
        directory: Path,
        *,
        encoding: str = "utf-8",
        date_format: str = "%Y_%m_%d",
    ) -> None:
        self.directory = directory
        self.date_format = date_format
        self.directory.mkdir(parents=True, exist_ok=True)
        self._current_date: date = datetime.now().date()
        super().__init__(
            self._path_for_date(self._current_date),
            mode="a",
            encoding=encoding,
        )

    def _path_for_date(self, target_date: date) -> Path:
        return self.directory / f"{target_date.strftime(self.date_format)}.log"

    def _switch_file(self) -> None:
        if self.stream:
            try:
                self.stream.flush()
            finally:
                self.stream.close()
        self.baseFilename = os.fspath(self._path_for_date(self._current_date))
        self.stream = self._open()

    def emit(self, record: logging.LogRecord) -> None:
        record_date = datetime.fromtimestamp(record.created).date()
        if record_date != self._current_date:
            self._current_date = record_date
            self._switch_file()
        super().emit(record)


def _build_handlers(cfg: LoggingConfig, level: int) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []

    if cfg.rich_tracebacks:
        install_rich_traceback(show_locals=False)

    if cfg.console:
        rich_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=cfg.rich_tracebacks,
            show_level=True,
            show_path=False,
            markup=False,
            log_time_format="%Y-%m-%d %H:%M:%S",
        )
        rich_handler.setLevel(level)
        rich_handler.setFormatter(logging.Formatter("%(context)s%(message)s"))
        rich_handler.addFilter(_context_filter)
        handlers.append(rich_handler)

    if cfg.log_dir:
        file_handler = DailyFileHandler(Path(cfg.log_dir))
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(context)s%(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        file_handler.addFilter(_context_filter)
        handlers.append(file_handler)

    return handlers


def init_logging(**kwargs: object) -> None:
    """Initialise the shared logging configuration.

    Idempotent: repeated calls with the same options keep the running setup,
    different options tear it down and rebuild it.
    """

    with _config_lock:
        global _config, _listener

        cfg = LoggingConfig()
        for key, value in kwargs.items():
            if hasattr(cfg, key):
                setattr(cfg, key, value)  # type: ignore[arg-type]

        if _config is not None:
            if _config == cfg:
                return
            _teardown_locked()
        level = _parse_level(cfg.level)

        root = logging.getLogger()
        root.setLevel(logging.NOTSET)
        for handler in list(root.handlers):
            root.removeHandler(handler)

        handlers = _build_handlers(cfg, level)

        if cfg.queue and handlers:
            log_queue: SimpleQueue = SimpleQueue()
            queue_handler = QueueHandler(log_queue)
            queue_handler.setLevel(level)
            # Context must be rendered on the producing thread, before the
            # record crosses the queue.
            queue_handler.addFilter(_context_filter)
            root.addHandler(queue_handler)
            listener = QueueListener(log_queue, *handlers, respect_handler_level=True)
            listener.start()
            _listener = listener
        else:
            for handler in handlers:
                root.addHandler(handler)

        _config = cfg


def _teardown_locked() -> None:
    global _listener, _config
    if _listener:
        _listener.stop()
    _listener = None
    _config = None
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


def get_logger(name: str | None = None) -> logging.Logger:
    with _config_lock:
        if _config is None:
            init_logging()
    cfg = _config or LoggingConfig()
    return logging.getLogger(name or cfg.app_name)

