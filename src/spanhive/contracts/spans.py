# src/spanhive/contracts/spans.py
"""Finished span shape consumed by the recorder.

Spans are produced by the tracing library. The recorder only reads them,
so every type here is frozen.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from spanhive.contracts.errors import SpanFormatError


@dataclass(frozen=True, slots=True)
class SpanContext:
    """Identifiers carried by a span."""

    trace_id: int
    span_id: int
    baggage: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LogRecord:
    """A timestamped set of key/value pairs logged against a span."""

    timestamp: datetime
    fields: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class FinishedSpan:
    """A completed span as handed over by the tracer.

    Attributes:
        context: Trace and span identifiers
        operation: Operation name
        start: Wall-clock start time
        duration: Elapsed time of the operation
        parent_span_id: Span ID of the parent, None for root spans
        tags: Tag key to value, values are heterogeneous
        logs: Log records in the order they were emitted
    """

    context: SpanContext
    operation: str
    start: datetime
    duration: timedelta
    parent_span_id: int | None = None
    tags: Mapping[str, Any] = field(default_factory=dict)
    logs: tuple[LogRecord, ...] = ()

    @property
    def duration_ns(self) -> int:
        """Duration in whole nanoseconds."""
        # timedelta resolution is microseconds; integer math avoids float drift
        return (self.duration // timedelta(microseconds=1)) * 1000

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FinishedSpan:
        """Build a span from its JSON representation.

        Expected keys: trace_id, span_id, operation, start (ISO-8601),
        duration_ns. Optional: parent_span_id, tags, logs, baggage.

        Raises:
            SpanFormatError: If a required key is missing or has the wrong type
        """
        try:
            trace_id = _require_int(data, "trace_id")
            span_id = _require_int(data, "span_id")
            operation = data["operation"]
            start = _parse_timestamp(data["start"])
            duration_ns = _require_int(data, "duration_ns")
        except KeyError as e:
            raise SpanFormatError(f"missing required key {e.args[0]!r}") from None

        if not isinstance(operation, str):
            raise SpanFormatError(f"'operation' must be a string, got {type(operation).__name__}")
        if duration_ns < 0:
            raise SpanFormatError(f"'duration_ns' must be >= 0, got {duration_ns}")

        parent_span_id = data.get("parent_span_id")
        if parent_span_id is not None and (isinstance(parent_span_id, bool) or not isinstance(parent_span_id, int)):
            raise SpanFormatError(f"'parent_span_id' must be an integer or null, got {type(parent_span_id).__name__}")

        tags = data.get("tags", {})
        if not isinstance(tags, Mapping):
            raise SpanFormatError(f"'tags' must be an object, got {type(tags).__name__}")

        baggage = data.get("baggage", {})
        if not isinstance(baggage, Mapping):
            raise SpanFormatError(f"'baggage' must be an object, got {type(baggage).__name__}")

        raw_logs = data.get("logs", [])
        if not isinstance(raw_logs, list):
            raise SpanFormatError(f"'logs' must be a list, got {type(raw_logs).__name__}")
        logs = tuple(_parse_log(entry) for entry in raw_logs)

        return cls(
            context=SpanContext(trace_id=trace_id, span_id=span_id, baggage=dict(baggage)),
            operation=operation,
            start=start,
            # duration_ns // 1000 keeps microsecond precision, the finest timedelta holds
            duration=timedelta(microseconds=duration_ns // 1000),
            parent_span_id=parent_span_id,
            tags=dict(tags),
            logs=logs,
        )


def _require_int(data: Mapping[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise SpanFormatError(f"'{key}' must be an integer, got {type(value).__name__}")
    return value


def _parse_timestamp(value: Any) -> datetime:
    if not isinstance(value, str):
        raise SpanFormatError(f"timestamp must be an ISO-8601 string, got {type(value).__name__}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise SpanFormatError(f"invalid timestamp {value!r}: {e}") from e
    # Naive timestamps are treated as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _parse_log(entry: Any) -> LogRecord:
    if not isinstance(entry, Mapping):
        raise SpanFormatError(f"log entry must be an object, got {type(entry).__name__}")
    try:
        timestamp = _parse_timestamp(entry["timestamp"])
    except KeyError:
        raise SpanFormatError("log entry is missing 'timestamp'") from None
    fields = entry.get("fields", {})
    if not isinstance(fields, Mapping):
        raise SpanFormatError(f"log 'fields' must be an object, got {type(fields).__name__}")
    return LogRecord(timestamp=timestamp, fields=dict(fields))
