"""Logging setup for the palace command line."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int = logging.WARNING, log_file: Path | None = None) -> None:
    """Attach handlers to the `palace` namespace logger.

    Console output goes to stderr so it never interleaves with the model's
    answer on stdout. The optional file handler always records DEBUG.
    Calling this again replaces the previous handlers.

    Args:
        level: Console level, as a name ("DEBUG") or a logging constant.
        log_file: Optional path for a rotating log file.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    palace_logger = logging.getLogger("palace")
    palace_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    palace_logger.addHandler(console_handler)
    effective = level

    if log_file is not None:
        log_file = log_file.expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        palace_logger.addHandler(file_handler)
        effective = logging.DEBUG

    palace_logger.setLevel(effective)

    # Don't propagate to root logger
    palace_logger.propagate = False
