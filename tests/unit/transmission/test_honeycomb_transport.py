# tests/unit/transmission/test_honeycomb_transport.py
"""Tests for HoneycombTransport.

HTTP traffic is intercepted with respx; retry delays are configured to zero.
"""

import json
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
import respx

from spanhive.contracts.errors import TransportError
from spanhive.contracts.events import Event
from spanhive.transmission import HoneycombTransport, TransportProtocol

BATCH_URL = "https://api.honeycomb.io/1/batch/spans"

_NO_DELAY = {"retry_base_delay": 0, "retry_max_delay": 0, "retry_jitter": 0}


def _event(n: int = 0, **overrides: Any) -> Event:
    values: dict[str, Any] = {
        "fields": {"n": n},
        "timestamp": datetime(2026, 1, 30, 12, 0, 0, tzinfo=UTC),
        "dataset": "spans",
        "write_key": "secret-key",
    }
    values.update(overrides)
    return Event(**values)


def _accepted(count: int) -> httpx.Response:
    return httpx.Response(200, json=[{"status": 202}] * count)


@pytest.fixture
def transport() -> Iterator[HoneycombTransport]:
    t = HoneycombTransport()
    t.configure({"batch_size": 3, "max_attempts": 3, **_NO_DELAY})
    yield t
    t.close()


class TestConfiguration:
    def test_implements_protocol(self) -> None:
        assert isinstance(HoneycombTransport(), TransportProtocol)

    def test_defaults_accepted(self) -> None:
        t = HoneycombTransport()
        t.configure({})
        t.close()

    @pytest.mark.parametrize(
        "options",
        [
            {"batch_size": 0},
            {"batch_size": "10"},
            {"max_attempts": True},
            {"timeout": 0},
            {"retry_base_delay": -1},
            {"unexpected": 1},
        ],
    )
    def test_invalid_options_rejected(self, options: dict[str, Any]) -> None:
        with pytest.raises(TransportError) as exc_info:
            HoneycombTransport().configure(options)
        assert exc_info.value.transport_name == "honeycomb"

    def test_unconfigured_export_is_noop(self) -> None:
        t = HoneycombTransport()
        t.export(_event())
        assert t.stats["events_buffered"] == 0


class TestBatching:
    @respx.mock
    def test_full_batch_sent_immediately(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(3))

        for n in range(3):
            transport.export(_event(n))

        assert route.call_count == 1
        request = route.calls.last.request
        assert request.headers["X-Honeycomb-Team"] == "secret-key"
        assert request.headers["Content-Type"] == "application/json"
        body = json.loads(request.content)
        assert [item["data"]["n"] for item in body] == [0, 1, 2]
        assert body[0]["samplerate"] == 1
        assert body[0]["time"] == "2026-01-30T12:00:00+00:00"
        assert transport.stats["events_delivered"] == 3

    @respx.mock
    def test_partial_batch_waits_for_flush(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(2))

        transport.export(_event(0))
        transport.export(_event(1))
        assert route.call_count == 0
        assert transport.stats["events_buffered"] == 2

        transport.flush()

        assert route.call_count == 1
        assert transport.stats["events_buffered"] == 0

    @respx.mock
    def test_destinations_batched_separately(self, transport: HoneycombTransport) -> None:
        spans = respx.post(BATCH_URL).mock(return_value=_accepted(1))
        other = respx.post("https://api.honeycomb.io/1/batch/other%20set").mock(return_value=_accepted(1))

        transport.export(_event(0))
        transport.export(_event(1, dataset="other set", write_key="other-key"))
        transport.flush()

        assert spans.call_count == 1
        assert other.call_count == 1
        assert other.calls.last.request.headers["X-Honeycomb-Team"] == "other-key"

    @respx.mock
    def test_sample_rate_carried_in_payload(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(1))

        transport.export(_event(sample_rate=10))
        transport.flush()

        assert json.loads(route.calls.last.request.content)[0]["samplerate"] == 10

    @respx.mock
    def test_custom_api_host(self, transport: HoneycombTransport) -> None:
        route = respx.post("http://localhost:8080/1/batch/spans").mock(return_value=_accepted(1))

        transport.export(_event(api_host="http://localhost:8080"))
        transport.flush()

        assert route.call_count == 1

    @respx.mock
    def test_unencodable_values_rendered_as_strings(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(1))

        transport.export(_event(fields={"obj": object()}))
        transport.flush()

        data = json.loads(route.calls.last.request.content)[0]["data"]
        assert data["obj"].startswith("<object object")


class TestFailures:
    @respx.mock
    def test_server_error_retried_then_succeeds(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(side_effect=[httpx.Response(500), _accepted(1)])

        transport.export(_event())
        transport.flush()

        assert route.call_count == 2
        assert transport.stats["events_delivered"] == 1
        assert transport.stats["events_failed"] == 0

    @respx.mock
    def test_rate_limit_retried(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(side_effect=[httpx.Response(429), httpx.Response(429), _accepted(1)])

        transport.export(_event())
        transport.flush()

        assert route.call_count == 3
        assert transport.stats["events_delivered"] == 1

    @respx.mock
    def test_network_error_exhausts_attempts(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(side_effect=httpx.ConnectError("refused"))

        transport.export(_event())
        transport.flush()

        assert route.call_count == 3
        assert transport.stats["events_failed"] == 1
        assert transport.stats["events_buffered"] == 0

    @respx.mock
    def test_client_error_not_retried(self, transport: HoneycombTransport) -> None:
        route = respx.post(BATCH_URL).mock(return_value=httpx.Response(401, text="unknown API key"))

        transport.export(_event())
        transport.flush()

        assert route.call_count == 1
        assert transport.stats["events_failed"] == 1
        assert transport.stats["events_delivered"] == 0

    @respx.mock
    def test_per_event_statuses_counted(self, transport: HoneycombTransport) -> None:
        respx.post(BATCH_URL).mock(
            return_value=httpx.Response(
                200,
                json=[{"status": 202}, {"status": 400, "error": "bad field"}, {"status": 202}],
            )
        )

        for n in range(3):
            transport.export(_event(n))

        assert transport.stats["events_delivered"] == 2
        assert transport.stats["events_failed"] == 1

    @respx.mock
    def test_unparseable_response_counts_delivered(self, transport: HoneycombTransport) -> None:
        respx.post(BATCH_URL).mock(return_value=httpx.Response(200, text="ok"))

        transport.export(_event())
        transport.flush()

        assert transport.stats["events_delivered"] == 1


class TestClose:
    @respx.mock
    def test_close_sends_buffered_events(self) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(1))
        t = HoneycombTransport()
        t.configure(_NO_DELAY)

        t.export(_event())
        t.close()

        assert route.call_count == 1

    @respx.mock
    def test_close_idempotent(self) -> None:
        route = respx.post(BATCH_URL).mock(return_value=_accepted(1))
        t = HoneycombTransport()
        t.configure(_NO_DELAY)
        t.export(_event())

        t.close()
        t.close()

        assert route.call_count == 1

    @respx.mock
    def test_injected_client_left_open(self) -> None:
        respx.post(BATCH_URL).mock(return_value=_accepted(1))
        client = httpx.Client()
        t = HoneycombTransport(client=client)
        t.configure(_NO_DELAY)

        t.close()

        assert not client.is_closed
        client.close()
