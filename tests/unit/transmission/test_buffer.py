# tests/unit/transmission/test_buffer.py
"""Unit tests for BoundedBuffer."""

import pytest

from spanhive.contracts.events import Event
from spanhive.transmission.buffer import BoundedBuffer


def _event(n: int) -> Event:
    return Event(fields={"n": n}, dataset="d", write_key="k")


def test_max_size_validated() -> None:
    with pytest.raises(ValueError):
        BoundedBuffer(max_size=0)


def test_fifo_batches() -> None:
    buffer = BoundedBuffer(max_size=10)
    for n in range(5):
        buffer.append(_event(n))

    assert [e.fields["n"] for e in buffer.pop_batch(3)] == [0, 1, 2]
    assert [e.fields["n"] for e in buffer.pop_batch(3)] == [3, 4]
    assert buffer.pop_batch(3) == []


def test_overflow_drops_oldest() -> None:
    buffer = BoundedBuffer(max_size=3)
    for n in range(5):
        buffer.append(_event(n))

    assert len(buffer) == 3
    assert buffer.dropped_count == 2
    assert [e.fields["n"] for e in buffer.pop_batch(10)] == [2, 3, 4]


def test_no_drops_when_not_full() -> None:
    buffer = BoundedBuffer(max_size=3)
    for n in range(3):
        buffer.append(_event(n))
    assert buffer.dropped_count == 0
