"""Structured logging configuration using structlog."""

import logging
import sys
from typing import Any

import structlog

# Third-party loggers that are too chatty at INFO.
_NOISY_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "asyncio")


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    service_name: str = "designdesk",
) -> None:
    """
    Configure structured logging for the service.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON; if False, output colored console format
        service_name: Bound to every log line as `service`
    """
    log_level = getattr(logging, level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        renderer: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_request_context(request_id: str, **kwargs: Any) -> None:
    """Bind the HTTP request to all subsequent log entries."""
    structlog.contextvars.bind_contextvars(request_id=request_id, **kwargs)


def bind_user_context(user_id: str, role: str) -> None:
    """Bind the authenticated user once the bearer token resolves."""
    structlog.contextvars.bind_contextvars(user_id=user_id, role=role)


def clear_request_context(*extra_keys: str) -> None:
    """Drop the per-request keys, keeping the service binding."""
    structlog.contextvars.unbind_contextvars("request_id", "user_id", "role", *extra_keys)
