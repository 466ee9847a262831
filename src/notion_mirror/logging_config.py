"""Structured JSON logging configuration.

Configures Python stdlib logging to emit one JSON object per record on stdout,
with ``severity``/``timestamp``/``logger`` field names. Context passed through
``extra=`` (request path, status, attempt number) lands as top-level fields.

Usage:
    from notion_mirror.logging_config import configure_logging
    configure_logging()
"""

import copy
import logging
import logging.config

LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s",
            "rename_fields": {
                "levelname": "severity",
                "asctime": "timestamp",
                "name": "logger",
            },
            "static_fields": {
                "service": "notion-mirror",
            },
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        # notion-client logs every request line at INFO
        "notion_client": {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def configure_logging(level: str | None = None) -> None:
    """Apply structured JSON logging configuration.

    Call once at application startup (e.g., in FastAPI lifespan).

    Args:
        level: Root log level name. Defaults to the level in ``LOGGING_CONFIG``.
    """
    config = copy.deepcopy(LOGGING_CONFIG)
    if level:
        config["root"]["level"] = level.upper()
    logging.config.dictConfig(config)
