"""
Structured logging for the perspective data loader.

Strategies and the loader log event-style messages with key/value context
through structlog. Applications call ``configure_logging`` once at startup;
level, output format and service name come from ``PerspectiveSettings``
(``PERSPECTIVE_LOG_LEVEL``, ``PERSPECTIVE_LOG_JSON``,
``PERSPECTIVE_SERVICE_NAME``):

    >>> from perspective.core.logging import configure_logging, get_logger
    >>> configure_logging()
    >>> logger = get_logger(__name__)
    >>> logger.debug("load_counts", table="orders", columns="customer_id")

``LogContext`` binds per-load fields such as ``engine_type`` and
``pure_name`` through contextvars, so concurrent loads running in separate
tasks never see each other's fields.

Tags:
    logging, structlog, observability, perspective
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from perspective.core.settings import PerspectiveSettings, get_settings


def _service_stamp(service: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service)
        return event_dict

    return stamp


def _ecs_field_names(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Rename timestamp and level to their ECS field names."""
    if "timestamp" in event_dict:
        event_dict["@timestamp"] = event_dict.pop("timestamp")
    if "level" in event_dict:
        event_dict["log.level"] = event_dict.pop("level")
    return event_dict


def configure_logging(
    settings: PerspectiveSettings | None = None,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog from loader settings.

    Args:
        settings: Source of ``log_level``, ``log_json`` and ``service_name``;
            defaults to :func:`get_settings`.
        add_timestamp: Include an ISO timestamp in each event.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    json_format = settings.log_json
    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _service_stamp(settings.service_name),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors += [_ecs_field_names, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


class LogContext:
    """Binds fields for the duration of one load.

    Example:
        async with LogContext(engine_type="docdb", pure_name="orders"):
            logger.debug("load_data")
    """

    def __init__(self, **fields: Any):
        self._fields = fields

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._fields)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.unbind_contextvars(*self._fields)

    async def __aenter__(self) -> LogContext:
        return self.__enter__()

    async def __aexit__(self, *args) -> None:
        self.__exit__(*args)


__all__ = ["configure_logging", "get_logger", "LogContext"]
