# src/spanhive/transmission/transports/honeycomb.py
"""Honeycomb batch API transport.

Buffers events per destination (api_host, write_key, dataset) and sends
each batch as one request to the batch endpoint:

    POST {api_host}/1/batch/{dataset}
    X-Honeycomb-Team: {write_key}
    [{"time": ..., "samplerate": ..., "data": {...}}, ...]

Network errors, 429 and 5xx responses are retried with exponential backoff,
so an event may be delivered more than once but is not silently lost to a
transient failure. The per-event statuses in a successful response are
checked and failures logged.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import httpx
import structlog
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from spanhive import __version__
from spanhive.contracts.errors import TransportError
from spanhive.contracts.events import Event
from spanhive.transmission.buffer import BoundedBuffer
from spanhive.transmission.encoding import event_payload, json_default

logger = structlog.get_logger(__name__)

_Destination = tuple[str, str, str]


class RetryableStatusError(Exception):
    """Raised for HTTP responses worth retrying (429 and 5xx)."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, httpx.TransportError | RetryableStatusError)


class HoneycombTransport:
    """Send events to the Honeycomb batch API.

    Configuration options:
        batch_size: Events per request (default: 50)
        buffer_size: Events buffered per destination before the oldest are
            dropped (default: 10000)
        timeout: Request timeout in seconds (default: 10.0)
        max_attempts: Total tries per batch, including the first (default: 3)
        retry_base_delay: Initial backoff in seconds (default: 0.5)
        retry_max_delay: Backoff ceiling in seconds (default: 10.0)
        retry_jitter: Maximum random jitter in seconds (default: 0.5)

    Example configuration:
        delivery:
          transports:
            - name: honeycomb
              options:
                batch_size: 100
                timeout: 5

    Thread safety:
        Relies on the Transmission serializing calls.
    """

    _name = "honeycomb"

    def __init__(self, client: httpx.Client | None = None) -> None:
        """Initialize unconfigured transport.

        Args:
            client: Optional preconfigured httpx.Client. When omitted one is
                created on configure() and owned by the transport.
        """
        self._client = client
        self._owns_client = client is None
        self._batch_size = 50
        self._buffer_size = 10_000
        self._timeout = 10.0
        self._max_attempts = 3
        self._retry_base_delay = 0.5
        self._retry_max_delay = 10.0
        self._retry_jitter = 0.5
        self._buffers: dict[_Destination, BoundedBuffer] = {}
        self._configured = False

        self._events_delivered = 0
        self._events_failed = 0
        self._batches_sent = 0

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        """Validate options and create the HTTP client.

        Raises:
            TransportError: If an option has the wrong type or range
        """
        self._batch_size = self._int_option(config, "batch_size", self._batch_size, minimum=1)
        self._buffer_size = self._int_option(config, "buffer_size", self._buffer_size, minimum=1)
        self._max_attempts = self._int_option(config, "max_attempts", self._max_attempts, minimum=1)
        self._timeout = self._float_option(config, "timeout", self._timeout, strictly_positive=True)
        self._retry_base_delay = self._float_option(config, "retry_base_delay", self._retry_base_delay)
        self._retry_max_delay = self._float_option(config, "retry_max_delay", self._retry_max_delay)
        self._retry_jitter = self._float_option(config, "retry_jitter", self._retry_jitter)

        unknown = set(config) - {
            "batch_size",
            "buffer_size",
            "max_attempts",
            "timeout",
            "retry_base_delay",
            "retry_max_delay",
            "retry_jitter",
        }
        if unknown:
            raise TransportError(self._name, f"Unknown option(s): {sorted(unknown)}")

        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                headers={"User-Agent": f"spanhive/{__version__}"},
            )
        self._configured = True

        logger.debug(
            "Honeycomb transport configured",
            batch_size=self._batch_size,
            max_attempts=self._max_attempts,
            timeout=self._timeout,
        )

    def _int_option(self, config: dict[str, Any], key: str, default: int, *, minimum: int) -> int:
        value = config.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransportError(self._name, f"'{key}' must be an integer, got {type(value).__name__}")
        if value < minimum:
            raise TransportError(self._name, f"{key} must be >= {minimum}, got {value}")
        return value

    def _float_option(self, config: dict[str, Any], key: str, default: float, *, strictly_positive: bool = False) -> float:
        value = config.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise TransportError(self._name, f"'{key}' must be a number, got {type(value).__name__}")
        if value < 0 or (strictly_positive and value == 0):
            bound = "> 0" if strictly_positive else ">= 0"
            raise TransportError(self._name, f"{key} must be {bound}, got {value}")
        return float(value)

    @property
    def stats(self) -> dict[str, int]:
        """Delivery counters: events delivered, events failed, batches sent, events buffered."""
        return {
            "events_delivered": self._events_delivered,
            "events_failed": self._events_failed,
            "batches_sent": self._batches_sent,
            "events_buffered": sum(len(b) for b in self._buffers.values()),
            "events_overflowed": sum(b.dropped_count for b in self._buffers.values()),
        }

    def export(self, event: Event) -> None:
        """Buffer the event and send its destination's batch once full."""
        if not self._configured:
            logger.warning("Honeycomb transport not configured, dropping event", dataset=event.dataset)
            return

        try:
            destination = event.destination
            buffer = self._buffers.get(destination)
            if buffer is None:
                buffer = BoundedBuffer(max_size=self._buffer_size)
                self._buffers[destination] = buffer
            buffer.append(event)
            if len(buffer) >= self._batch_size:
                self._send_batch(destination, buffer.pop_batch(self._batch_size))
        except Exception as e:
            logger.warning(
                "Failed to buffer event",
                transport=self._name,
                dataset=event.dataset,
                error=str(e),
            )

    def flush(self) -> None:
        """Send every buffered event, one batch at a time."""
        for destination, buffer in list(self._buffers.items()):
            while len(buffer) > 0:
                self._send_batch(destination, buffer.pop_batch(self._batch_size))

    def _send_batch(self, destination: _Destination, events: list[Event]) -> None:
        if not events:
            return
        api_host, write_key, dataset = destination
        url = f"{api_host}/1/batch/{quote(dataset, safe='')}"
        headers = {
            "Content-Type": "application/json",
            "X-Honeycomb-Team": write_key,
        }

        try:
            body = json.dumps([event_payload(e) for e in events], default=json_default)
        except (TypeError, ValueError) as e:
            self._events_failed += len(events)
            logger.warning("Failed to encode batch", dataset=dataset, event_count=len(events), error=str(e))
            return

        try:
            response = self._post_with_retry(url, headers, body)
        except Exception as e:
            self._events_failed += len(events)
            logger.warning(
                "Batch delivery failed",
                dataset=dataset,
                event_count=len(events),
                attempts=self._max_attempts,
                error=str(e),
            )
            return

        self._batches_sent += 1
        if response.status_code != 200:
            self._events_failed += len(events)
            logger.warning(
                "Batch rejected by API",
                dataset=dataset,
                status_code=response.status_code,
                event_count=len(events),
                body=response.text[:500],
            )
            return

        self._record_event_statuses(dataset, events, response)

    def _post_with_retry(self, url: str, headers: dict[str, str], body: str) -> httpx.Response:
        assert self._client is not None
        retrying = Retrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(
                initial=self._retry_base_delay,
                max=self._retry_max_delay,
                jitter=self._retry_jitter,
            ),
            retry=retry_if_exception(_is_retryable),
            before_sleep=self._log_retry,
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                response = self._client.post(url, headers=headers, content=body)
                if response.status_code == 429 or response.status_code >= 500:
                    raise RetryableStatusError(response)
                return response
        raise AssertionError("unreachable: tenacity reraises on the final attempt")

    def _log_retry(self, retry_state: Any) -> None:
        outcome = retry_state.outcome
        logger.debug(
            "Retrying batch delivery",
            attempt=retry_state.attempt_number,
            error=str(outcome.exception()) if outcome is not None else None,
        )

    def _record_event_statuses(self, dataset: str, events: list[Event], response: httpx.Response) -> None:
        try:
            statuses = response.json()
        except ValueError:
            # Request accepted but the body is unreadable; count as delivered
            self._events_delivered += len(events)
            logger.debug("Unparseable batch response body", dataset=dataset)
            return

        if not isinstance(statuses, list) or len(statuses) != len(events):
            self._events_delivered += len(events)
            logger.debug("Unexpected batch response shape", dataset=dataset)
            return

        failed = 0
        first_error: str | None = None
        for status in statuses:
            code = status.get("status") if isinstance(status, dict) else None
            if isinstance(code, int) and 200 <= code < 300:
                continue
            failed += 1
            if first_error is None and isinstance(status, dict):
                first_error = str(status.get("error", code))

        self._events_delivered += len(events) - failed
        self._events_failed += failed
        if failed:
            logger.warning(
                "Events rejected by API",
                dataset=dataset,
                failed=failed,
                event_count=len(events),
                first_error=first_error,
            )

    def close(self) -> None:
        """Send remaining events and release the HTTP client. Idempotent."""
        if not self._configured:
            return
        self.flush()
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None
        self._configured = False
