# src/spanhive/recorder/fields.py
"""Span to event field mapping.

Canonical fields:
    traceID        span.context.trace_id
    id             span.context.span_id
    parentID       span.parent_span_id (only when the span has a parent)
    operationName  span.operation
    durationMs     whole milliseconds, truncated
    logs           span.logs, forwarded as-is

Tags are copied unchanged except where a tag key equals a reserved field
name: such a tag is written under "tag.<key>" so it cannot overwrite the
canonical field. Renamed keys never overwrite another tag either.
"""

from collections.abc import Mapping
from typing import Any

from spanhive.contracts.events import Event
from spanhive.contracts.spans import FinishedSpan

TRACE_ID_FIELD = "traceID"
SPAN_ID_FIELD = "id"
PARENT_ID_FIELD = "parentID"
OPERATION_NAME_FIELD = "operationName"
DURATION_MS_FIELD = "durationMs"
LOGS_FIELD = "logs"

TAG_PREFIX = "tag."

RESERVED_FIELDS: frozenset[str] = frozenset(
    {
        TRACE_ID_FIELD,
        SPAN_ID_FIELD,
        OPERATION_NAME_FIELD,
        DURATION_MS_FIELD,
        LOGS_FIELD,
    }
)

_NS_PER_MS = 1_000_000


def tag_field_name(key: str) -> str:
    """First-choice field name for a tag key; see tag_fields for collisions."""
    if key in RESERVED_FIELDS:
        return TAG_PREFIX + key
    return key


def tag_fields(tags: Mapping[str, Any]) -> dict[str, Any]:
    """Tag key/value pairs with reserved keys renamed.

    Unreserved keys keep their names. A reserved key whose "tag." name is
    already used by another tag is prefixed again until the name is free,
    so a span tagged with both "id" and "tag.id" keeps both values.
    """
    fields = {key: value for key, value in tags.items() if key not in RESERVED_FIELDS}
    for key, value in tags.items():
        if key not in RESERVED_FIELDS:
            continue
        name = tag_field_name(key)
        while name in fields:
            name = TAG_PREFIX + name
        fields[name] = value
    return fields


def map_span(span: FinishedSpan, event: Event | None = None) -> Event:
    """Write a span's fields into an event.

    Args:
        span: The finished span to translate
        event: Event to populate, typically pre-filled with the default
            destination. A new Event is created when omitted.

    Returns:
        The populated event, timestamped with the span's start time.
    """
    if event is None:
        event = Event()

    event.add_field(TRACE_ID_FIELD, span.context.trace_id)
    event.add_field(SPAN_ID_FIELD, span.context.span_id)
    if span.parent_span_id is not None:
        event.add_field(PARENT_ID_FIELD, span.parent_span_id)
    event.add_field(OPERATION_NAME_FIELD, span.operation)
    event.add_field(DURATION_MS_FIELD, span.duration_ns // _NS_PER_MS)
    event.add_field(LOGS_FIELD, span.logs)
    event.timestamp = span.start

    event.add(tag_fields(span.tags))
    return event
