"""
Structured logging (structlog).

Modules log dotted event names with keyword context::

    logger = get_logger(__name__)
    logger.info("mutator.patch_applied", table="Providers", record_id=rid)

Cell decode errors and audit-write failures are reported only through the
log stream. Output always goes to stderr so ``--json`` command output on
stdout stays parseable.

Processor chain built by :func:`configure_logging`::

    TimeStamper(iso) -> merge_contextvars -> add_log_level
      -> service.name -> [ECS field names, format_exc_info]  (JSON only)
      -> JSONRenderer | ConsoleRenderer
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


def _service_stamp(service: str) -> Processor:
    def stamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service)
        return event_dict

    return stamp


def _ecs_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename ``timestamp``/``level`` to their ECS field names."""
    for plain, ecs in (("timestamp", "@timestamp"), ("level", "log.level")):
        if plain in event_dict:
            event_dict[ecs] = event_dict.pop(plain)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "cred-spine",
    add_timestamp: bool = True,
) -> None:
    """Configure structlog (and the stdlib root logger) once per process.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        json_format: JSON lines when True, console when False; when None,
            JSON unless stdout is a terminal
        service: Value of the ``service.name`` field
        add_timestamp: Stamp each line with an ISO timestamp
    """
    numeric_level = getattr(logging, level.upper())
    if json_format is None:
        json_format = not sys.stdout.isatty()

    processors: list[Processor] = []
    if add_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))
    processors += [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_stamp(service),
    ]
    if json_format:
        processors += [
            _ecs_names,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)


def get_logger(name: str | None = None) -> Any:
    """Logger with ``logger_name`` bound (print loggers have no name of their own)."""
    return structlog.get_logger(logger_name=name) if name else structlog.get_logger()


class LogContext:
    """Bind keys into every log line inside the ``with`` block.

    ``None`` values are skipped::

        with LogContext(request_id=ctx.request_id, caller="cli", user=None):
            engine.patch_by_id("Providers", rid, fields)
    """

    def __init__(self, **values: Any):
        self._values = {k: v for k, v in values.items() if v is not None}

    def __enter__(self) -> LogContext:
        structlog.contextvars.bind_contextvars(**self._values)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self._values)


__all__ = [
    "LogContext",
    "configure_logging",
    "get_logger",
]
