"""Structured logging setup using structlog.

Every line logged while a webhook is being handled carries the delivery's
``event_id`` and ``event_type`` (see ``event_context``).
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog


# (pattern, replacement) pairs applied to every string value
_REDACTIONS = [
    # Discord webhook URLs carry their credential in the last path segment
    (
        re.compile(r"(https?://(?:\w+\.)?discord(?:app)?\.com/api/webhooks/\d+/)[\w\-]+", re.IGNORECASE),
        r"\1***REDACTED***",
    ),
    (
        re.compile(r"(token|secret|signature|authorization)[\"']?\s*[:=]\s*[\"']?(Bearer\s+)?[\w\-\.]+", re.IGNORECASE),
        r"\1=***REDACTED***",
    ),
]

_NOISY_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


def _redact(
    _logger: structlog.types.WrappedLogger,
    _method: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    for key, value in list(event_dict.items()):
        if not isinstance(value, str):
            continue
        for pattern, replacement in _REDACTIONS:
            value = pattern.sub(replacement, value)
        event_dict[key] = value
    return event_dict


@contextmanager
def event_context(event_id: Any, event_type: str) -> Iterator[None]:
    """Bind the webhook delivery to every log line emitted inside the block."""
    structlog.contextvars.bind_contextvars(event_id=event_id, event_type=event_type)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars("event_id", "event_type")


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog; JSON lines when ``json_output`` is set."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if numeric_level <= logging.DEBUG:
        print(
            "WARNING: DEBUG logging is enabled. Webhook body previews and "
            "API error bodies will be logged.",
            file=sys.stderr,
        )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            _redact,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
