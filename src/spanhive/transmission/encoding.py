# src/spanhive/transmission/encoding.py
"""JSON encoding of event field values.

Field values are forwarded without coercion by the recorder, so the wire
encoding has to cope with whatever the tracer put into tags and logs.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping, Set
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from spanhive.contracts.events import Event


def json_default(value: Any) -> Any:
    """``default=`` hook for json.dumps.

    Handles datetimes, timedeltas (as milliseconds), enums, dataclasses,
    mappings and sets. Anything else is rendered with str().
    """
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value / timedelta(milliseconds=1)
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, Set):
        return list(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def event_payload(event: Event) -> dict[str, Any]:
    """Batch API representation of one event."""
    return {
        "time": event.timestamp.isoformat(),
        "samplerate": event.sample_rate,
        "data": event.fields,
    }
