# tests/unit/recorder/test_recorder.py
"""Unit tests for SpanRecorder orchestration.

Tests cover:
- Default recording path (no router, no sampler)
- Router overrides
- Sampler drop / rate stamping
- Presampled submission only
- Router/sampler exceptions propagate
- close() semantics (owned vs shared transmission, idempotence)
"""

from unittest.mock import MagicMock

import pytest

from spanhive.contracts.config import RecorderConfig
from spanhive.contracts.events import Event, RouteDecision, SampleDecision
from spanhive.contracts.spans import FinishedSpan
from spanhive.recorder.recorder import SpanRecorder
from spanhive.recorder.sampling import trace_id_sampler
from spanhive.transmission import MemoryTransport, Transmission
from tests.factories import make_span


@pytest.fixture
def mock_transmission() -> MagicMock:
    return MagicMock(spec=Transmission)


def _submitted(mock_transmission: MagicMock) -> list[Event]:
    return [call.args[0] for call in mock_transmission.send_presampled.call_args_list]


class TestRecordSpan:
    def test_example_span_without_router_or_sampler(self, transmission: Transmission, memory_transport: MemoryTransport) -> None:
        recorder = SpanRecorder(RecorderConfig(write_key="test", dataset="test"), transmission)

        recorder.record_span(make_span(trace_id=42, operation="testOperation", tags={"exampleTag": "value"}))
        recorder.close()

        assert len(memory_transport.events) == 1
        event = memory_transport.events[0]
        assert event.fields["operationName"] == "testOperation"
        assert event.fields["exampleTag"] == "value"
        assert event.fields["durationMs"] >= 0
        assert event.sample_rate == 1

    def test_uses_presampled_path_only(self, mock_transmission: MagicMock) -> None:
        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d"), mock_transmission)

        recorder.record_span(make_span())

        mock_transmission.send_presampled.assert_called_once()
        mock_transmission.send.assert_not_called()

    def test_default_destination(self, mock_transmission: MagicMock) -> None:
        config = RecorderConfig(write_key="key", dataset="spans", api_host="http://localhost:9999")
        SpanRecorder(config, mock_transmission).record_span(make_span())

        (event,) = _submitted(mock_transmission)
        assert event.destination == ("http://localhost:9999", "key", "spans")
        assert event.sample_rate == 1

    def test_fresh_event_per_span(self, mock_transmission: MagicMock) -> None:
        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d"), mock_transmission)

        recorder.record_span(make_span(span_id=1, tags={"only_first": True}))
        recorder.record_span(make_span(span_id=2))

        first, second = _submitted(mock_transmission)
        assert first is not second
        assert "only_first" not in second.fields


class TestRouting:
    def test_router_overrides_non_empty_fields(self, mock_transmission: MagicMock) -> None:
        config = RecorderConfig(
            write_key="default-key",
            dataset="default",
            router=lambda span: RouteDecision(dataset=f"svc-{span.tags['service']}"),
        )
        SpanRecorder(config, mock_transmission).record_span(make_span(tags={"service": "checkout"}))

        (event,) = _submitted(mock_transmission)
        assert event.dataset == "svc-checkout"
        assert event.write_key == "default-key"

    def test_router_called_once_per_span(self, mock_transmission: MagicMock) -> None:
        router = MagicMock(return_value=RouteDecision())
        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d", router=router), mock_transmission)
        span = make_span()

        recorder.record_span(span)

        router.assert_called_once_with(span)

    def test_router_exception_propagates(self, mock_transmission: MagicMock) -> None:
        def broken_router(span: FinishedSpan) -> RouteDecision:
            raise KeyError("service")

        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d", router=broken_router), mock_transmission)

        with pytest.raises(KeyError):
            recorder.record_span(make_span())
        mock_transmission.send_presampled.assert_not_called()


class TestSampling:
    def test_drop_submits_nothing(self, mock_transmission: MagicMock) -> None:
        config = RecorderConfig(write_key="k", dataset="d", sampler=lambda span: (0, True))
        recorder = SpanRecorder(config, mock_transmission)

        for trace_id in range(20):
            recorder.record_span(make_span(trace_id=trace_id))

        mock_transmission.send_presampled.assert_not_called()

    def test_rate_stamped_on_retained_event(self, mock_transmission: MagicMock) -> None:
        config = RecorderConfig(write_key="k", dataset="d", sampler=lambda span: SampleDecision.keep(25))
        SpanRecorder(config, mock_transmission).record_span(make_span())

        (event,) = _submitted(mock_transmission)
        assert event.sample_rate == 25

    def test_sampler_sees_routed_span_after_router(self, mock_transmission: MagicMock) -> None:
        order: list[str] = []

        def router(span: FinishedSpan) -> RouteDecision:
            order.append("router")
            return RouteDecision()

        def sampler(span: FinishedSpan) -> SampleDecision:
            order.append("sampler")
            return SampleDecision.keep()

        SpanRecorder(RecorderConfig(write_key="k", dataset="d", router=router, sampler=sampler), mock_transmission).record_span(make_span())

        assert order == ["router", "sampler"]

    def test_one_in_ten_by_trace_id(self, transmission: Transmission, memory_transport: MemoryTransport) -> None:
        recorder = SpanRecorder(RecorderConfig(write_key="test", dataset="test", sampler=trace_id_sampler(10)), transmission)

        for trace_id in range(100):
            recorder.record_span(make_span(trace_id=trace_id, tags={"exampleTag": "value"}))
        recorder.close()

        events = memory_transport.events
        assert 0 < len(events) < 20
        assert all(event.sample_rate == 10 for event in events)

    def test_sampler_exception_propagates(self, mock_transmission: MagicMock) -> None:
        def broken_sampler(span: FinishedSpan) -> SampleDecision:
            raise ZeroDivisionError

        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d", sampler=broken_sampler), mock_transmission)

        with pytest.raises(ZeroDivisionError):
            recorder.record_span(make_span())
        mock_transmission.send_presampled.assert_not_called()

    def test_build_event_returns_none_on_drop(self, mock_transmission: MagicMock) -> None:
        recorder = SpanRecorder(RecorderConfig(sampler=lambda span: SampleDecision.discard()), mock_transmission)
        assert recorder.build_event(make_span()) is None


class TestClose:
    def test_owned_transmission_closed(self, mock_transmission: MagicMock) -> None:
        SpanRecorder(RecorderConfig(), mock_transmission).close()

        mock_transmission.close.assert_called_once()
        mock_transmission.flush.assert_not_called()

    def test_shared_transmission_flushed_not_closed(self, mock_transmission: MagicMock) -> None:
        SpanRecorder(RecorderConfig(), mock_transmission, owns_transmission=False).close()

        mock_transmission.flush.assert_called_once()
        mock_transmission.close.assert_not_called()

    def test_close_idempotent(self, mock_transmission: MagicMock) -> None:
        recorder = SpanRecorder(RecorderConfig(), mock_transmission)
        recorder.close()
        recorder.close()

        mock_transmission.close.assert_called_once()

    def test_context_manager_closes(self, mock_transmission: MagicMock) -> None:
        with SpanRecorder(RecorderConfig(), mock_transmission) as recorder:
            recorder.record_span(make_span())

        mock_transmission.close.assert_called_once()

    def test_record_after_close_is_dropped(self, transmission: Transmission, memory_transport: MemoryTransport) -> None:
        recorder = SpanRecorder(RecorderConfig(write_key="k", dataset="d"), transmission)
        recorder.close()

        recorder.record_span(make_span())

        assert memory_transport.events == []
        assert transmission.health_metrics["events_dropped"] == 1

    def test_missing_destination_rejected_not_raised(self, transmission: Transmission, memory_transport: MemoryTransport) -> None:
        recorder = SpanRecorder(RecorderConfig(), transmission)

        recorder.record_span(make_span())
        recorder.close()

        assert memory_transport.events == []
        assert transmission.health_metrics["events_rejected"] == 1
