# src/spanhive/recorder/recorder.py
"""SpanRecorder: turns finished spans into submitted events.

Per span:
1. Map the span into a fresh Event carrying the default destination
2. Apply the router's destination override, if a router is configured
3. Ask the sampler whether to keep the span, if a sampler is configured;
   a drop ends processing with nothing submitted
4. Submit through Transmission.send_presampled(), so the Transmission
   never applies its own random sampling

Without a sampler every span is submitted at sample rate 1.

Thread Safety:
    record_span() reads only immutable configuration and builds a new
    Event per call, so it is safe to call from many threads at once.
    The router and sampler must themselves be safe for concurrent calls.
"""

from __future__ import annotations

import threading
from types import TracebackType

import structlog

from spanhive.contracts.config import RecorderConfig
from spanhive.contracts.events import Event
from spanhive.contracts.spans import FinishedSpan
from spanhive.recorder.fields import map_span
from spanhive.recorder.routing import apply_route
from spanhive.recorder.sampling import resolve_sample
from spanhive.transmission.manager import Transmission

logger = structlog.get_logger(__name__)


class SpanRecorder:
    """Forward finished spans to a Transmission.

    Delivery failures never reach the caller of record_span(); they are
    handled and logged by the Transmission. Exceptions raised by the router
    or sampler do propagate, since they are bugs in caller code.

    Example:
        >>> recorder = SpanRecorder(RecorderConfig(write_key="key", dataset="spans"), transmission)
        >>> recorder.record_span(span)
        >>> recorder.close()
    """

    def __init__(
        self,
        config: RecorderConfig,
        transmission: Transmission,
        *,
        owns_transmission: bool = True,
    ) -> None:
        """Initialize the recorder.

        Args:
            config: Default destination plus optional router and sampler
            transmission: Delivery subsystem events are submitted to
            owns_transmission: If True, close() closes the transmission.
                Pass False when several recorders share one transmission;
                close() then only flushes it.
        """
        self._config = config
        self._transmission = transmission
        self._owns_transmission = owns_transmission
        self._close_lock = threading.Lock()
        self._closed = False

    @property
    def config(self) -> RecorderConfig:
        return self._config

    @property
    def transmission(self) -> Transmission:
        return self._transmission

    def build_event(self, span: FinishedSpan) -> Event | None:
        """Map, route and sample a span without submitting it.

        Returns:
            The event to submit, or None if the sampler dropped the span.
        """
        event = Event(
            dataset=self._config.dataset,
            write_key=self._config.write_key,
            api_host=self._config.api_host,
        )
        map_span(span, event)

        if self._config.router is not None:
            apply_route(event, self._config.router(span))

        if self._config.sampler is not None:
            decision = resolve_sample(self._config.sampler(span))
            if decision.drop:
                return None
            event.sample_rate = decision.sample_rate

        return event

    def record_span(self, span: FinishedSpan) -> None:
        """Record one finished span.

        Called by the tracer exactly once per finished span. Returns as soon
        as the event is queued; it does not wait for delivery.
        """
        event = self.build_event(span)
        if event is None:
            return
        self._transmission.send_presampled(event)

    def close(self) -> None:
        """Wait until every span recorded so far has been delivered or abandoned.

        Closes the transmission if this recorder owns it, otherwise flushes
        it. Later calls are no-ops.
        """
        with self._close_lock:
            if self._closed:
                logger.debug("Span recorder already closed")
                return
            self._closed = True

        if self._owns_transmission:
            self._transmission.close()
        else:
            self._transmission.flush()

    def __enter__(self) -> SpanRecorder:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
