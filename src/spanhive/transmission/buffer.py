# src/spanhive/transmission/buffer.py
"""Bounded buffer for event batching.

Ring buffer that drops the oldest event on overflow. Batching transports
keep one buffer per destination and pop batches from it.
"""

from collections import deque

import structlog

from spanhive.contracts.events import Event

logger = structlog.get_logger(__name__)


class BoundedBuffer:
    """Ring buffer that drops oldest events on overflow.

    Logs every 100 drops instead of per event.

    Thread Safety:
        NOT thread-safe. The Transmission serializes access to transports,
        which own their buffers.

    Example:
        buffer = BoundedBuffer(max_size=1000)
        buffer.append(event)
        batch = buffer.pop_batch(max_count=100)
    """

    _LOG_INTERVAL = 100

    def __init__(self, max_size: int = 10_000) -> None:
        """Initialize the bounded buffer.

        Args:
            max_size: Maximum number of events to buffer. When full, oldest
                events are evicted on append.

        Raises:
            ValueError: If max_size < 1.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._buffer: deque[Event] = deque(maxlen=max_size)
        self._dropped_count: int = 0
        self._last_logged_drop_count: int = 0

    def append(self, event: Event) -> None:
        """Append event to buffer, counting the eviction if it was full."""
        # deque evicts during append, so fullness must be checked first
        was_full = len(self._buffer) == self._buffer.maxlen
        self._buffer.append(event)
        if was_full:
            self._dropped_count += 1
            if self._dropped_count - self._last_logged_drop_count >= self._LOG_INTERVAL:
                logger.warning(
                    "Event buffer overflow - events dropped",
                    dropped_since_last_log=self._dropped_count - self._last_logged_drop_count,
                    dropped_total=self._dropped_count,
                    buffer_size=self._buffer.maxlen,
                    dataset=event.dataset,
                )
                self._last_logged_drop_count = self._dropped_count

    def pop_batch(self, max_count: int) -> list[Event]:
        """Pop up to max_count events in FIFO order."""
        batch = []
        for _ in range(min(max_count, len(self._buffer))):
            batch.append(self._buffer.popleft())
        return batch

    @property
    def dropped_count(self) -> int:
        """Number of events dropped due to buffer overflow."""
        return self._dropped_count

    def __len__(self) -> int:
        return len(self._buffer)
