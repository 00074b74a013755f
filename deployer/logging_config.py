"""Structured logging configuration using structlog.

``configure_logging`` sets up structlog processors and configures the stdlib
root logger to emit structured JSON (production) or human-readable console
output (development).  When a log
file is given, events are also appended to it as JSON lines; ``log_to_file``
attaches such a file for the duration of a single deploy.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import structlog


def configure_logging(
    *,
    json_logs: bool = True,
    log_level: str = "INFO",
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        json_logs: When *True* (default / production), render logs as JSON.
            When *False* (development), use a colourful console renderer.
        log_level: Root log level name (e.g. ``"INFO"``, ``"DEBUG"``).
        log_file: Optional path of the deploy log. Parent directories are
            created on demand.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    if log_file:
        root_logger.addHandler(json_file_handler(log_file))

    root_logger.setLevel(log_level.upper())


def json_file_handler(log_file: str | Path, *, delay: bool = False) -> logging.FileHandler:
    """Build a handler appending structlog events to ``log_file`` as JSON lines."""
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, encoding="utf-8", delay=delay)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    return file_handler


@contextmanager
def log_to_file(log_file: str | Path) -> Iterator[None]:
    """Copy events logged by the current thread to ``log_file`` within the block.

    Nothing is attached when the root logger already writes to that file.
    The file is only created once a record reaches it.
    """
    root_logger = logging.getLogger()
    path = os.path.abspath(log_file)
    if any(
        isinstance(existing, logging.FileHandler) and existing.baseFilename == path
        for existing in root_logger.handlers
    ):
        yield
        return

    thread_id = threading.get_ident()
    file_handler = json_file_handler(path, delay=True)
    file_handler.addFilter(lambda record: record.thread == thread_id)
    root_logger.addHandler(file_handler)
    try:
        yield
    finally:
        root_logger.removeHandler(file_handler)
        file_handler.close()
