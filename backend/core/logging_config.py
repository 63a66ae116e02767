"""Structured logging configuration using structlog.

JSON logs in production, readable console output in development or with
``LOG_FORMAT=text``. Execution and workflow ids are bound through
contextvars while a run is in flight, so every line a step handler emits
carries them without passing a logger around.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog
from app.config import get_settings

# Libraries that log every request at INFO
NOISY_LOGGERS = ("uvicorn.access", "httpx", "httpcore")


def _add_app_context(_logger, _method_name, event_dict: dict) -> dict:
    settings = get_settings()
    event_dict.setdefault("app", settings.APP_NAME)
    event_dict.setdefault("env", settings.ENVIRONMENT)
    return event_dict


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        level: Overrides ``LOG_LEVEL``.
        fmt: ``json`` or ``text``; overrides ``LOG_FORMAT``.
    """
    settings = get_settings()
    fmt = (fmt or settings.LOG_FORMAT).lower()
    level_name = (level or settings.LOG_LEVEL).upper()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development or fmt == "text":
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        shared_processors.append(_add_app_context)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def execution_log_context(execution_id: str, workflow_id: str) -> Iterator[None]:
    """Bind execution/workflow ids to every log line emitted inside the block."""
    with structlog.contextvars.bound_contextvars(execution_id=execution_id, workflow_id=workflow_id):
        yield
