"""Logging configuration using Loguru.

Modules log through `get_logger(__name__)`. Structured context is passed as
`extra={...}` and lands flat in the record's extra dict, so JSON file
records carry fields such as note_id, run_id or error_type directly.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """Configure Loguru logger with JSON serialization and file rotation."""
    logger.remove()
    logger.configure(extra={"module": "notegraph"})

    # Console logging
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True, serialize=False)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        # Indexing runs log from background tasks; enqueue keeps file writes off the loop
        logger.add(
            log_path / "notegraph_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


class ContextLogger:
    """
    Module logger taking structured context as `extra`.

    Messages are logged as-is: they are never run through str.format, so
    model output or error text containing braces is safe to interpolate.
    """

    def __init__(self, bound):
        self._logger = bound

    def bind(self, **context: Any) -> "ContextLogger":
        """Logger with context attached to every record (e.g. run_id)."""
        return ContextLogger(self._logger.bind(**context))

    def _log(self, level: str, message: str, extra: dict | None) -> None:
        target = self._logger.bind(**extra) if extra else self._logger
        target.opt(depth=2).log(level, message)

    def debug(self, message: str, extra: dict | None = None) -> None:
        self._log("DEBUG", message, extra)

    def info(self, message: str, extra: dict | None = None) -> None:
        self._log("INFO", message, extra)

    def warning(self, message: str, extra: dict | None = None) -> None:
        self._log("WARNING", message, extra)

    def error(self, message: str, extra: dict | None = None) -> None:
        self._log("ERROR", message, extra)


def get_logger(name: str) -> ContextLogger:
    """Get a logger instance for a module."""
    return ContextLogger(logger.bind(module=name))
