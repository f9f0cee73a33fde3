"""Logging configuration for the API, the workers and the scripts."""

import logging
import sys

from tablefed.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty at INFO; their request-level logs drown the pipeline logs.
_QUIET_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging() -> None:
    """Configure application-wide logging. Safe to call more than once.

    Level is DEBUG when settings.debug is True, otherwise INFO. A stdout
    handler is installed only when the root logger has none, so a runtime
    that already ships log handlers (e.g. a function runtime) keeps them and
    only the level is applied.
    """
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(log_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name (usually __name__)."""
    return logging.getLogger(name)
