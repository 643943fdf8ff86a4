"""
Logging setup. Stdout carries the MCP stdio stream, so console logs go to stderr.
"""

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import Optional

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level: Optional[str]) -> int:
    """Map a level name to a logging level, falling back to INFO."""
    if not level:
        return logging.INFO
    return _LEVELS.get(level.strip().lower(), logging.INFO)


def setup_logging(level: Optional[str] = "info", log_file: Optional[str] = None) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(parse_level(level))

    for handler in list(root_logger.handlers):
        if getattr(handler, "_wealthy_mcp", False):
            root_logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console._wealthy_mcp = True
    root_logger.addHandler(console)

    if log_file:
        setup_log_rotation(log_file, formatter)


def setup_log_rotation(log_file: str, formatter: Optional[logging.Formatter] = None) -> None:
    """Daily rotating file handler, keeps 7 days."""
    try:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        handler = TimedRotatingFileHandler(
            filename=log_file,
            when="midnight",
            interval=1,
            backupCount=7,
            encoding="utf-8"
        )
        handler.setFormatter(formatter or logging.Formatter(LOG_FORMAT))
        handler._wealthy_mcp = True
        logging.getLogger().addHandler(handler)

        logger.info(f"Log rotation configured for {log_file} (daily, keep 7 days)")

    except OSError as e:
        logger.error(f"Failed to setup log rotation: {e}")
