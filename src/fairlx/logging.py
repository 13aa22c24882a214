"""Structured logging for Fairlx.

structlog renders everything: the API logs through structlog loggers,
while storage, dispatcher and retry queue use plain ``logging`` loggers
whose records are routed through the same renderer via
``structlog.stdlib.ProcessorFormatter``. Webhook secrets, signatures and
bearer tokens never reach the output.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor, WrappedLogger

REDACTED = "[redacted]"

SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "secret",
        "signature",
        "token",
        "authorization",
        "x-fairlx-signature",
    }
)

_configured = False
_handler: logging.Handler | None = None


def _redact_mapping(values: dict[Any, Any]) -> dict[Any, Any]:
    return {
        k: REDACTED if isinstance(k, str) and k.lower() in SENSITIVE_KEYS else v
        for k, v in values.items()
    }


def redact_sensitive(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Mask secret-bearing keys, including one level down (e.g. ``headers``)."""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = _redact_mapping(value)
    return event_dict


def configure_logging(level: str = "INFO", format: str = "json") -> None:
    """Configure structured logging.

    Safe to call repeatedly; the handler installed by a previous call is
    replaced, other root handlers are left alone.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        format: "json" for production, "text" for a colored console.
    """
    global _configured, _handler

    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        redact_sensitive,
    ]

    renderer: list[Processor]
    if format.lower() == "json":
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderer],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    root.addHandler(handler)
    root.setLevel(log_level)
    _handler = handler

    # Keep httpx request lines out of INFO output
    logging.getLogger("httpx").setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: object) -> None:
    """Bind request-scoped values (request_id, path, ...) to later log lines.

    Values are held in context variables, so concurrent requests served
    by the same event loop do not see each other's context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all request-scoped values."""
    structlog.contextvars.clear_contextvars()
