# ============================================================================
# FILE: app/core/logging.py
# ============================================================================
import logging
import logging.config
from app.config import settings


def setup_logging() -> None:
    """Configure root logging for the API process"""
    level = "DEBUG" if settings.DEBUG else settings.LOG_LEVEL.upper()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "root": {
            "handlers": ["console"],
            "level": level,
        },
        "loggers": {
            # SQL echo is far too chatty outside of debugging sessions
            "sqlalchemy.engine": {"level": "WARNING"},
            "multipart": {"level": "WARNING"},
        },
    })
    logging.getLogger(__name__).debug(f"Logging configured at level {level}")
