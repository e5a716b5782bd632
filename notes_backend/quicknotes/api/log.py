"""
Logging setup.

structlog is configured once, on top of stdlib logging, so that uvicorn and
SQLAlchemy records share the same renderer as the application's own events.

Environment:
    LOG_LEVEL   - DEBUG, INFO (default), WARNING, ERROR
    LOG_FORMAT  - "console" (default) or "json"

Usage:
    from quicknotes.api.log import get_logger

    logger = get_logger(__name__)
    logger.info("note trashed", note_id=3, owner=1)
"""

import logging
import os
import sys
from typing import Any

import structlog


def setup_logging(level: str | None = None, format_type: str | None = None) -> None:
    """
    Configure structlog and the root logger.

    Arguments override LOG_LEVEL / LOG_FORMAT. Calling it again reconfigures.
    """
    effective_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    effective_format = format_type or os.getenv("LOG_FORMAT", "console")

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if effective_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, effective_level, logging.INFO))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    # passlib warns about the bcrypt version banner on every import
    logging.getLogger("passlib").setLevel(logging.ERROR)


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to the module name."""
    return structlog.get_logger(name)
