"""
Logging configuration
"""
import logging
import sys
from zest_tasks.config import get_settings

settings = get_settings()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "aiosqlite")


def _level() -> int:
    return logging.DEBUG if settings.DEBUG else logging.INFO


def configure_logging() -> None:
    """Set up the zest_tasks logger tree once at app startup"""
    root = logging.getLogger("zest_tasks")
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(_level())
    root.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; output goes through the handler from configure_logging()"""
    logger = logging.getLogger(name)
    logger.setLevel(_level())
    return logger
