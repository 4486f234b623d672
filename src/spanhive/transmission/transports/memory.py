# src/spanhive/transmission/transports/memory.py
"""In-memory transport.

Keeps every exported event in a list. Used in tests and for inspecting
what would have been sent without network access.
"""

from __future__ import annotations

import threading
from typing import Any

from spanhive.contracts.errors import TransportError
from spanhive.contracts.events import Event


class MemoryTransport:
    """Collect events in memory.

    Configuration options:
        max_events: Optional cap; events beyond it are discarded (default: no cap)
    """

    _name = "memory"

    def __init__(self) -> None:
        self._events: list[Event] = []
        self._lock = threading.Lock()
        self._max_events: int | None = None
        self.flush_count = 0
        self.close_count = 0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        max_events = config.get("max_events")
        if max_events is not None and (isinstance(max_events, bool) or not isinstance(max_events, int) or max_events < 1):
            raise TransportError(self._name, f"'max_events' must be a positive integer or null, got {max_events!r}")
        self._max_events = max_events

    def export(self, event: Event) -> None:
        with self._lock:
            if self._max_events is not None and len(self._events) >= self._max_events:
                return
            self._events.append(event)

    @property
    def events(self) -> list[Event]:
        """Snapshot of collected events in delivery order."""
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.close_count += 1
