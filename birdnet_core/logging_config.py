"""
Logging configuration with a colored console handler and rotating file handlers.

Usage:
    from birdnet_core.logging_config import configure_file_logging, init_logging, shutdown_logging
    init_logging()
    configure_file_logging(settings.main.log)
    ...
    shutdown_logging()
"""

from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime
from pathlib import Path

from birdnet_core.config._sections.backup import parse_weekday
from birdnet_core.config._sections.common import LogConfig

# ANSI color codes for console output
COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

# Logger-specific colors for tags
TAG_COLORS = {
    "birdnet_core": "\033[94m",  # Blue
    "birdnet_core.config": "\033[96m",  # Cyan
    "birdnet_core.cli": "\033[93m",  # Yellow
}

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that adds colors and a bracketed logger tag."""

    def format(self, record: logging.LogRecord) -> str:
        level_color = COLORS.get(record.levelname, "")
        reset = COLORS["RESET"]

        tag = record.name
        tag_color = TAG_COLORS.get(tag, "\033[37m")

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_str = f"{level_color}{record.levelname:8}{reset}"
        tag_str = f"{tag_color}[{tag}]{reset}"

        extra_parts = []
        if getattr(record, "operation", None):
            extra_parts.append(f"op={record.operation}")
        if getattr(record, "path", None):
            extra_parts.append(f"path={record.path}")

        extra_str = f" ({', '.join(extra_parts)})" if extra_parts else ""
        msg = f"{timestamp} {level_str} {tag_str} {record.getMessage()}{extra_str}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# Global state
_file_handlers: list[tuple[logging.Logger, logging.Handler]] = []
_initialized = False


def _get_console_level() -> int:
    """Get console log level from environment variable."""
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def init_logging(console_level: int | None = None) -> None:
    """Initialize the logging system with a colored console handler."""
    global _initialized

    if _initialized:
        return

    if console_level is None:
        console_level = _get_console_level()

    # Clear any existing handlers on root logger (from basicConfig or other sources)
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())

    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(console_handler)

    _initialized = True


def build_file_handler(log: LogConfig) -> logging.Handler:
    """Create a rotating file handler for a log section.

    daily rotates at midnight, weekly on ``rotation_day``, size once the file
    exceeds ``max_size`` bytes.
    """
    path = Path(log.path)
    if path.parent != Path("."):
        path.parent.mkdir(parents=True, exist_ok=True)

    rotation = log.rotation.lower()
    if rotation == "size":
        handler: logging.Handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=log.max_size, backupCount=5, encoding="utf-8"
        )
    elif rotation == "weekly":
        # logging counts weekdays from Monday (W0), config counts from Sunday
        weekday = (parse_weekday(log.rotation_day) - 1) % 7
        handler = logging.handlers.TimedRotatingFileHandler(
            path, when=f"W{weekday}", backupCount=8, encoding="utf-8"
        )
    else:
        handler = logging.handlers.TimedRotatingFileHandler(path, when="midnight", backupCount=7, encoding="utf-8")

    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def configure_file_logging(log: LogConfig, logger_name: str | None = None) -> logging.Handler | None:
    """Attach a file handler for ``log`` to the root logger (or ``logger_name``).

    Returns the handler, or None when the section is disabled.
    """
    if not log.enabled:
        return None

    handler = build_file_handler(log)
    handler.setLevel(logging.INFO)
    logger = logging.getLogger(logger_name)
    logger.addHandler(handler)
    _file_handlers.append((logger, handler))
    return handler


def shutdown_logging() -> None:
    """Flush and detach file handlers."""
    while _file_handlers:
        logger, handler = _file_handlers.pop()
        logger.removeHandler(handler)
        handler.close()
