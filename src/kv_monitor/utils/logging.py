"""Logging configuration and utilities.

Application code logs through structlog; records are handed to the
standard library so handlers, levels and pytest's ``caplog`` keep working.
Alert lines (event ``NOTIFY``) go to the ``kv_monitor.notify`` logger,
which can additionally be written to its own file for mail-less setups.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List

import structlog
from pythonjsonlogger import jsonlogger

NOTIFY_LOGGER = "kv_monitor.notify"

_QUIET_LOGGERS = ("redis", "httpx", "httpcore")


def _processors(format_type: str) -> List[structlog.types.Processor]:
    renderer = (
        structlog.processors.JSONRenderer()
        if format_type == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    return [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        renderer,
    ]


def _formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _file_handler(path: Path, formatter: logging.Formatter) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: str = "INFO",
    format_type: str = "json",
    file_path: Path | None = None,
    notify_file_path: Path | None = None,
) -> None:
    """Setup structured logging for the application."""
    structlog.configure(
        processors=_processors(format_type),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = _formatter(format_type)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers: List[logging.Handler] = [console_handler]
    if file_path:
        handlers.append(_file_handler(Path(file_path), formatter))

    logging.basicConfig(level=getattr(logging, level.upper()), handlers=handlers)

    # NOTIFY lines are kept whatever the root level
    notify_logger = logging.getLogger(NOTIFY_LOGGER)
    notify_logger.setLevel(logging.INFO)
    if notify_file_path:
        target = os.path.abspath(notify_file_path)
        already = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == target
            for h in notify_logger.handlers
        )
        if not already:
            notify_logger.addHandler(_file_handler(Path(notify_file_path), formatter))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger."""
    return structlog.get_logger(name)
