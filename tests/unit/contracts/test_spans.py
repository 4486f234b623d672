# tests/unit/contracts/test_spans.py
"""Unit tests for FinishedSpan and its JSON parsing.

Tests cover:
- duration_ns arithmetic
- from_dict() happy path with optional keys
- from_dict() rejection of malformed input
"""

from datetime import UTC, datetime, timedelta

import pytest

from spanhive.contracts.errors import SpanFormatError
from spanhive.contracts.spans import FinishedSpan, LogRecord
from tests.factories import make_span


def _span_dict(**overrides: object) -> dict[str, object]:
    data: dict[str, object] = {
        "trace_id": 42,
        "span_id": 7,
        "operation": "testOperation",
        "start": "2026-01-30T12:00:00+00:00",
        "duration_ns": 15_000_000,
    }
    data.update(overrides)
    return data


class TestDuration:
    def test_duration_ns_from_timedelta(self) -> None:
        span = make_span(duration=timedelta(milliseconds=3, microseconds=250))
        assert span.duration_ns == 3_250_000

    def test_zero_duration(self) -> None:
        assert make_span(duration=timedelta(0)).duration_ns == 0


class TestFromDict:
    def test_minimal_span(self) -> None:
        span = FinishedSpan.from_dict(_span_dict())

        assert span.context.trace_id == 42
        assert span.context.span_id == 7
        assert span.operation == "testOperation"
        assert span.start == datetime(2026, 1, 30, 12, 0, 0, tzinfo=UTC)
        assert span.duration_ns == 15_000_000
        assert span.parent_span_id is None
        assert dict(span.tags) == {}
        assert span.logs == ()

    def test_optional_keys(self) -> None:
        span = FinishedSpan.from_dict(
            _span_dict(
                parent_span_id=3,
                tags={"http.status_code": 200, "error": False},
                baggage={"tenant": "acme"},
                logs=[{"timestamp": "2026-01-30T12:00:00.005+00:00", "fields": {"event": "retry"}}],
            )
        )

        assert span.parent_span_id == 3
        assert span.tags == {"http.status_code": 200, "error": False}
        assert span.context.baggage == {"tenant": "acme"}
        assert span.logs == (
            LogRecord(
                timestamp=datetime(2026, 1, 30, 12, 0, 0, 5000, tzinfo=UTC),
                fields={"event": "retry"},
            ),
        )

    def test_naive_timestamp_treated_as_utc(self) -> None:
        span = FinishedSpan.from_dict(_span_dict(start="2026-01-30T12:00:00"))
        assert span.start.tzinfo == UTC

    def test_sub_microsecond_duration_truncated(self) -> None:
        span = FinishedSpan.from_dict(_span_dict(duration_ns=1_999_999))
        assert span.duration_ns == 1_999_000

    @pytest.mark.parametrize("missing", ["trace_id", "span_id", "operation", "start", "duration_ns"])
    def test_missing_required_key(self, missing: str) -> None:
        data = _span_dict()
        del data[missing]
        with pytest.raises(SpanFormatError, match=missing):
            FinishedSpan.from_dict(data)

    @pytest.mark.parametrize(
        ("key", "value"),
        [
            ("trace_id", "42"),
            ("trace_id", True),
            ("span_id", 1.5),
            ("operation", 12),
            ("start", 1234567890),
            ("start", "not-a-date"),
            ("duration_ns", -1),
            ("parent_span_id", "abc"),
            ("tags", ["a", "b"]),
            ("baggage", "tenant=acme"),
            ("logs", {"timestamp": "2026-01-30T12:00:00"}),
            ("logs", [{"fields": {}}]),
            ("logs", [{"timestamp": "2026-01-30T12:00:00", "fields": []}]),
        ],
    )
    def test_invalid_values_rejected(self, key: str, value: object) -> None:
        with pytest.raises(SpanFormatError):
            FinishedSpan.from_dict(_span_dict(**{key: value}))

    def test_span_is_immutable(self) -> None:
        span = make_span()
        with pytest.raises(AttributeError):
            span.operation = "other"  # type: ignore[misc]
