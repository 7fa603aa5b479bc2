"""Structured logging for the planner (structlog).

JSON lines in production, coloured console output in development. Modules
log snake_case events with key-value context:

    log = get_logger(__name__)
    log.info("schedule_generated", items=42)

Per-request context (path, request id) is bound with ``bind_request`` and
merged into every event logged while handling that request.
"""

import logging
import sys
import uuid

import structlog

# Third-party loggers that are chatty at INFO
_QUIET_LOGGERS = ("httpx", "googleapiclient.discovery_cache", "urllib3", "google.auth")


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog and route stdlib logging to the same stream.

    Args:
        json_output: JSON lines (production) instead of console output.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and the Google SDKs log through stdlib
    root = logging.getLogger()
    root.handlers = [logging.StreamHandler(sys.stdout)]
    root.setLevel(numeric_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger bound with the calling module's name."""
    return structlog.get_logger(module=name)


def bind_request(method: str, path: str, request_id: str | None = None) -> str:
    """Start a fresh logging context for one HTTP request; returns its id."""
    request_id = request_id or uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=method, path=path)
    return request_id


def clear_request() -> None:
    structlog.contextvars.clear_contextvars()
