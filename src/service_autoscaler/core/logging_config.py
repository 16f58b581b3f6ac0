#!/usr/bin/env python3
"""
Process-wide logging for the autoscaler

Console output goes to stdout, optionally colored by level. A full log file
and an errors-only file can be added from the logging settings.
"""

import copy
import logging
import sys
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s"

# Client libraries that log every HTTP request at INFO/DEBUG
QUIET_LOGGERS = ("requests", "urllib3", "docker", "kubernetes")

_RESET = "\033[0m"
_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}


class ColoredFormatter(logging.Formatter):
    """Wraps the level name in an ANSI color for terminal output"""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)
        # Handlers share the record, so only a copy gets the escape codes
        tinted = copy.copy(record)
        tinted.levelname = f"{color}{record.levelname}{_RESET}"
        return super().format(tinted)


def resolve_level(level: str) -> int:
    """Map a level name to its logging constant, INFO when unrecognized"""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    error_log_file: Optional[str] = None,
    enable_colors: bool = True
) -> None:
    """
    Replace the root logger's handlers with the autoscaler's

    Args:
        level: Level name for the root logger and the console
        log_file: File receiving every record at `level` and above
        error_log_file: File receiving ERROR and above only
        enable_colors: Color level names on the console
    """
    numeric_level = resolve_level(level)

    root = logging.getLogger()
    root.setLevel(numeric_level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(numeric_level)
    console.setFormatter(ColoredFormatter(CONSOLE_FORMAT) if enable_colors else logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    targets = [(log_file, numeric_level), (error_log_file, logging.ERROR)]
    for path, file_level in targets:
        if path:
            root.addHandler(_open_log_file(path, file_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {logging.getLevelName(numeric_level)} level")
    if log_file:
        logger.info(f"Log file: {log_file}")


def _open_log_file(path: str, level: int) -> logging.Handler:
    log_path = Path(path)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
