"""Logging configuration for tabledao."""

from __future__ import annotations

import logging

import structlog

from .config import DaoSettings


def configure_logging(settings: DaoSettings | None = None) -> None:
    """Configure stdlib logging and route structlog through it."""
    settings = settings or DaoSettings.build_default()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {settings.log_level!r}")

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if settings.echo_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
