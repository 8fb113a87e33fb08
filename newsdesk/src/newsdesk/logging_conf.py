"""
Structured logging configuration using structlog.

Every swallowed fetch failure in the pipeline is logged, so sources that
silently come back empty can still be traced. Aggregator redirect URLs are
very long, so URL-valued fields are shortened before rendering.
"""

import logging
import sys

import structlog
from structlog.types import EventDict, Processor


URL_FIELDS = ("url", "link", "original", "resolved")
MAX_URL_CHARS = 120


def shorten_urls(logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Truncate URL-valued fields so one log line stays one line."""
    for key in URL_FIELDS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_URL_CHARS:
            event_dict[key] = value[:MAX_URL_CHARS] + "..."
    return event_dict


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    **context,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: If True, output logs as JSON (good for production)
        **context: Key/values bound to every log entry (e.g. service="api")
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )

    # Per-request fetch logs from the HTTP stack would drown the pipeline events
    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        shorten_urls,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: Processor = structlog.processors.JSONRenderer()
        processors = shared_processors + [structlog.processors.format_exc_info, renderer]
    else:
        processors = shared_processors + [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if context:
        structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """Get a logger, bound to `name` (usually __name__) when given."""
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger


def bind_context(**kwargs) -> None:
    """Bind additional context to all subsequent log entries."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()
