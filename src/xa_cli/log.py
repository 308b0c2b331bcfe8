"""Logging configuration.

File logging for request failures and debug info.
Logs are written to ~/.config/xa/logs/xa.log
"""
from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path
from typing import Optional

from xa_cli.config.config import CONFIG_DIR

# Directory for log files
LOGS_DIR = CONFIG_DIR / "logs"

PACKAGE_LOGGER = "xa_cli"

_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Module-level state
_handlers: list[logging.Handler] = []


def get_log_path() -> Path:
    """Get the log file path, creating its directory."""
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    return LOGS_DIR / "xa.log"


def configure_logging(verbose: bool = False, log_file: bool = True) -> Optional[Path]:
    """Configure logging for one process run.

    Args:
        verbose: Log DEBUG to stderr as well as the file
        log_file: Write WARNING and above (DEBUG when verbose) to the log file

    Returns:
        Path to the log file, or None if file logging is off or unavailable
    """
    close_logging()

    xa_logger = logging.getLogger(PACKAGE_LOGGER)
    level = logging.DEBUG if verbose else logging.WARNING
    xa_logger.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    log_path = None
    if log_file:
        try:
            log_path = get_log_path()
            handler: logging.Handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        except OSError:
            log_path = None
        else:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            xa_logger.addHandler(handler)
            _handlers.append(handler)

    if verbose:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        xa_logger.addHandler(handler)
        _handlers.append(handler)

    return log_path


def close_logging() -> None:
    """Remove and close handlers added by configure_logging."""
    xa_logger = logging.getLogger(PACKAGE_LOGGER)
    while _handlers:
        handler = _handlers.pop()
        xa_logger.removeHandler(handler)
        handler.close()


def log_exception(
    error: BaseException,
    context: str = "",
    include_traceback: bool = True,
) -> str:
    """Log an exception with full details to the log file.

    Args:
        error: The exception to log
        context: Additional context about what was happening
        include_traceback: Whether to include full traceback in log

    Returns:
        User-friendly error message (without traceback)
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    error_type = type(error).__name__
    error_msg = str(error) or error_type

    if context:
        user_msg = f"{context}: {error_msg}"
    else:
        user_msg = f"{error_type}: {error_msg}"

    if include_traceback:
        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        logger.error(f"{user_msg}\n{tb}")
    else:
        logger.error(user_msg)

    return user_msg
