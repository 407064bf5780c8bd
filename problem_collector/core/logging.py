"""Structured logging configuration with structlog.

JSON logs for production, colored console output for dev. Request handlers
carry a request_id and collection jobs carry job_id and job_kind, both
propagated through context variables so stdlib loggers pick them up too.
"""

import logging
import sys
from contextlib import AbstractContextManager
from contextvars import ContextVar

import structlog

# Context variable for request_id propagation across async calls
request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "arq.worker", "watchfiles")


def _add_request_id(logger, method_name, event_dict):
    """Add request_id from context variable to log event."""
    rid = request_id_var.get()
    if rid:
        event_dict["request_id"] = rid
    return event_dict


def job_log_context(job_id: str, kind: str) -> AbstractContextManager:
    """Bind job_id and job_kind to every log line emitted inside the block."""
    return structlog.contextvars.bound_contextvars(job_id=job_id, job_kind=str(kind))


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" for production, "console" for colored dev output
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
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
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Reduce noise from third-party libraries
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
