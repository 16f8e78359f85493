"""
Logging Setup

Console logging for the adapter, its HTTP client and the ASGI server.
"""

import logging.config
from typing import Any, Optional

from textgen_adapter.config import get_settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers and the level they are held at
_LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


def _console_logger(level: str) -> dict[str, Any]:
    return {"handlers": ["console"], "level": level, "propagate": False}


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure global log format

    Args:
        level: Adapter log level; defaults to LOG_LEVEL, else DEBUG when DEBUG is set
    """
    settings = get_settings()
    adapter_level = (level or settings.LOG_LEVEL or ("DEBUG" if settings.DEBUG else "INFO")).upper()

    loggers = {name: _console_logger(lib_level) for name, lib_level in _LIBRARY_LEVELS.items()}
    loggers["textgen_adapter"] = _console_logger(adapter_level)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {"handlers": ["console"], "level": adapter_level},
            "loggers": loggers,
        }
    )
