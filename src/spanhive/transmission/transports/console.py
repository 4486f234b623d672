# src/spanhive/transmission/transports/console.py
"""Console transport.

Writes events to stdout or stderr in JSON or human-readable format.
Primarily used for local debugging.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Literal, TextIO, TypeGuard

import structlog

from spanhive.contracts.errors import TransportError
from spanhive.contracts.events import Event
from spanhive.transmission.encoding import event_payload, json_default

logger = structlog.get_logger(__name__)


def _is_valid_format(v: str) -> TypeGuard[Literal["json", "pretty"]]:
    return v in {"json", "pretty"}


def _is_valid_output(v: str) -> TypeGuard[Literal["stdout", "stderr"]]:
    return v in {"stdout", "stderr"}


class ConsoleTransport:
    """Write events to stdout/stderr.

    Supports two output formats:
    - json: One JSON object per line, the same shape as the batch API payload
      plus the destination dataset
    - pretty: ``[TIMESTAMP] dataset (rate=N): key=value, ...``

    Configuration options:
        format: Output format - "json" (default) or "pretty"
        output: Output stream - "stdout" (default) or "stderr"
    """

    _name = "console"

    _VALID_FORMATS: frozenset[str] = frozenset({"json", "pretty"})
    _VALID_OUTPUTS: frozenset[str] = frozenset({"stdout", "stderr"})

    def __init__(self) -> None:
        self._format: Literal["json", "pretty"] = "json"
        self._output: Literal["stdout", "stderr"] = "stdout"
        self._stream: TextIO = sys.stdout

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the transport.

        Raises:
            TransportError: If configuration values are invalid
        """
        format_value = config.get("format", "json")
        if not isinstance(format_value, str):
            raise TransportError(
                self._name,
                f"'format' must be a string, got {type(format_value).__name__}",
            )
        if _is_valid_format(format_value):
            self._format = format_value
        else:
            raise TransportError(
                self._name,
                f"Invalid format '{format_value}'. Must be one of: {', '.join(sorted(self._VALID_FORMATS))}",
            )

        output_value = config.get("output", "stdout")
        if not isinstance(output_value, str):
            raise TransportError(
                self._name,
                f"'output' must be a string, got {type(output_value).__name__}",
            )
        if _is_valid_output(output_value):
            self._output = output_value
        else:
            raise TransportError(
                self._name,
                f"Invalid output '{output_value}'. Must be one of: {', '.join(sorted(self._VALID_OUTPUTS))}",
            )
        self._stream = sys.stdout if self._output == "stdout" else sys.stderr

        logger.debug(
            "Console transport configured",
            format=self._format,
            output=self._output,
        )

    def export(self, event: Event) -> None:
        """Write one line for the event. Never raises."""
        try:
            if self._format == "json":
                payload = event_payload(event)
                payload["dataset"] = event.dataset
                line = json.dumps(payload, default=json_default)
            else:
                line = self._format_pretty(event)
            print(line, file=self._stream)
        except Exception as e:
            logger.warning(
                "Failed to write event",
                transport=self._name,
                dataset=event.dataset,
                error=str(e),
            )

    def _format_pretty(self, event: Event) -> str:
        details = ", ".join(f"{key}={json.dumps(value, default=json_default)}" for key, value in sorted(event.fields.items()))
        return f"[{event.timestamp.isoformat()}] {event.dataset} (rate={event.sample_rate}): {details}"

    def flush(self) -> None:
        try:
            self._stream.flush()
        except Exception as e:
            logger.warning(
                "Failed to flush console stream",
                transport=self._name,
                error=str(e),
            )

    def close(self) -> None:
        """No-op: the console transport does not own stdout/stderr."""
        pass
