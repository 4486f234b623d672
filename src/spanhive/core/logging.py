# src/spanhive/core/logging.py
"""Structured logging configuration for spanhive.

Logs always go to stderr. The console transport and the CLI summary own
stdout, and a span file piped through ``spanhive send`` must come out the
other end without log lines mixed in.

Most delivery logging happens on the Transmission's dispatch thread, away
from the code that recorded the span, so every record carries its logger
name and thread name. Records from stdlib loggers such as httpx's go
through the same structlog processor chain via ProcessorFormatter and
come out in the same format.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.stdlib import ProcessorFormatter

# The Honeycomb transport's HTTP stack logs each request and connection at
# DEBUG. With one request per batch that buries spanhive's own debug output.
_NOISY_LOGGERS: tuple[str, ...] = (
    "httpx",
    "httpcore",
    "urllib3",
    "urllib3.connectionpool",
)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop the _record and _from_structlog keys ProcessorFormatter adds to every record."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _shared_processors() -> list[Any]:
    """Processors run for structlog and stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        CallsiteParameterAdder([CallsiteParameter.THREAD_NAME]),
        # Event timestamps are UTC; log timestamps match so the two line up
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def _render_processors(json_output: bool, stream: TextIO) -> list[Any]:
    if json_output:
        return [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    # No ANSI codes when stderr is redirected to a file or a log collector
    return [
        _remove_internal_fields,
        structlog.dev.ConsoleRenderer(colors=stream.isatty()),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for spanhive.

    Replaces any handlers on the root logger, so calling it again (the CLI
    does, once settings are loaded) switches format and level in place.

    Args:
        json_output: If True, output JSON lines. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    log_level = getattr(logging, level.upper())
    stream = sys.stderr
    shared_processors = _shared_processors()

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers are created at import time, before the CLI has
        # read the settings; cached loggers would keep the first configuration
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        ProcessorFormatter(
            processors=_render_processors(json_output, stream),
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)

    # At ERROR or CRITICAL the root level already hides their warnings
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound structlog logger for a module, typically ``get_logger(__name__)``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
