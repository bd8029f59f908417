"""
structlog setup for the scoring service.

Every record is one line keyed by event_type (the snake_case event name),
with level, an ISO-8601 UTC timestamp, the emitting module and whatever
scoring context the caller binds: address, network, score, list version.
LOG_FORMAT=json (default) renders JSON; any other value gets the console
renderer. LOG_LEVEL filters below the given level.

This module imports nothing from backend_walletrisk so any package can log.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Move structlog's event key to event_type."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
    return event_dict


def build_processors(log_format: str = LOG_FORMAT) -> list[Any]:
    """Processor chain ending in the renderer picked by log_format."""
    renderer: Any
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.format_exc_info,
        _event_type,
        renderer,
    ]


def configure_structlog(level: str = LOG_LEVEL, log_format: str = LOG_FORMAT) -> None:
    structlog.configure(
        processors=build_processors(log_format),
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level, logging.INFO)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """Module logger; records carry logger=name. Log with a snake_case event name."""
    return structlog.get_logger(name).bind(logger=name)


def bind_address(address: str, network: str | None = None) -> structlog.BoundLogger:
    """Return a logger with address (and network) bound to all subsequent calls."""
    log = get_logger("backend_walletrisk").bind(address=address)
    if network:
        log = log.bind(network=network)
    return log
