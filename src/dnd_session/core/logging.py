"""Structured logging for the session engine.

structlog renders key-value events: coloured console lines while
developing, JSON lines in production. Turns bind ``room_id`` through
``bind_context`` so every line logged during a turn carries it.

Example:
    >>> from dnd_session.core.logging import configure_from_settings, get_logger
    >>> configure_from_settings(get_settings())
    >>> logger = get_logger(__name__)
    >>> logger.info("Turn started", room_id="r1", actions=3)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

from dnd_session import __version__


if TYPE_CHECKING:
    from structlog.types import EventDict, WrappedLogger

    from dnd_session.core.config import Settings


_SECRET_KEYS = ("api_key", "authorization", "secret")
_MASK = "***"

# Loggers of the HTTP stack under the openai SDK
_QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def add_app_context(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Tag every event with the package name and version."""
    event_dict["app"] = "dnd_session"
    event_dict["version"] = __version__
    return event_dict


def mask_secrets(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Mask values logged under credential-like keys.

    ``token`` matches whole keys only, so counts like ``estimated_tokens``
    stay visible.
    """
    for key in list(event_dict):
        lowered = key.lower()
        if lowered == "token" or any(s in lowered for s in _SECRET_KEYS):
            event_dict[key] = _MASK
    return event_dict


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def configure_logging(*, level: str = "INFO", json_format: bool = False) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: Emit JSON lines instead of console output.
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        mask_secrets,
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: list[Processor]
    if json_format:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=_level_number(level),
        stream=sys.stdout,
        force=True,
    )
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from ``log_level`` and ``json_logs``.

    Debug mode always logs at DEBUG.
    """
    level = "DEBUG" if settings.debug else settings.log_level
    configure_logging(level=level, json_format=settings.json_logs)


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Return a structlog logger, usually named after the module."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind key-value pairs to every following log line.

    Example:
        >>> bind_context(room_id="abc123")
        >>> logger.info("Turn started")  # includes room_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop everything bound with ``bind_context``.

    Called when a turn ends so one room's context never leaks into the
    next room served by the same worker.
    """
    structlog.contextvars.clear_contextvars()


__all__ = [
    "add_app_context",
    "mask_secrets",
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "clear_context",
]
