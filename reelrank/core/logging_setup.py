"""structlog/stdlib logging bootstrap shared by the API process and scripts."""

import logging
import logging.config
import os
import sys

import structlog
from structlog.dev import ConsoleRenderer

_CONFIGURED = False

# Shared by structlog and the stdlib bridge so both emit the same shape.
SHARED_PROCESSORS: list = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def _is_local_environment(environment: str | None = None) -> bool:
    env = (environment if environment is not None else os.environ.get("ENVIRONMENT", "")).lower()
    return env in ("", "local", "development", "dev")


def configure_logging(log_level: str, environment: str | None = None) -> None:
    """Configure structured logging with environment-appropriate format.

    - Local/development: human-readable console output with colors
    - Anything else: JSON lines for log aggregation
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8", errors="backslashreplace")

    is_local = _is_local_environment(environment)

    structlog.configure(
        processors=[
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = ConsoleRenderer(colors=True, pad_event=40) if is_local else structlog.processors.JSONRenderer()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                    "foreign_pre_chain": SHARED_PROCESSORS,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "uvicorn.access": {"level": "INFO"},
                "uvicorn.error": {"level": "INFO"},
                # httpx logs every request at INFO; the fetch client logs its own events.
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
        }
    )

    _CONFIGURED = True
