"""Logging for the Task Master assistant.

One "taskmaster" logger shared by the poller, tools and transports. Each day
gets its own log file under LOG_DIR; console output is added when running in
a terminal.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from config import LOG_DIR, LOG_LEVEL

LOGGER_NAME = "taskmaster"

# Libraries that log every poll / HTTP call at INFO
NOISY_LOGGERS = ("apscheduler", "httpx", "discord")

FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"


def resolve_level(level: str) -> int:
    """Level name to logging constant; unknown names fall back to INFO."""
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: str = LOG_LEVEL, log_dir: Path = LOG_DIR) -> logging.Logger:
    """Build the assistant logger.

    Args:
        level: Level name for the assistant logger and its handlers
        log_dir: Directory for the dated log files
    """
    numeric_level = resolve_level(level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    log_file = Path(log_dir) / f"{datetime.now().strftime('%Y-%m-%d')}.log"
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(numeric_level)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        logger.addHandler(console_handler)

    # Keep scheduler/HTTP chatter out unless debugging
    library_level = numeric_level if numeric_level <= logging.DEBUG else max(numeric_level, logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger


logger = setup_logging()
