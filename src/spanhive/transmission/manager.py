# src/spanhive/transmission/manager.py
"""Transmission: asynchronous, batched delivery of events to transports.

The Transmission is the delivery subsystem underneath the span recorder:
1. Accepts events via send() (random sampling applied) or
   send_presampled() (transmitted exactly as decided)
2. Rejects events that cannot be delivered (no write key or dataset,
   submitted twice)
3. Queues events for a background dispatch thread
4. Dispatches to all transports with failure isolation
5. Flushes transports when a flush interval elapses, on flush() and on close()
6. Tracks health metrics and logs drops in aggregate

Thread Safety:
    send() and send_presampled() may be called from any number of threads.
    Counters written from caller threads are protected by _metrics_lock.
    Transports are only ever called while holding _transport_lock, so a
    transport never sees concurrent calls.
    flush() waits on a marker queued behind the current tail, never for the
    queue to empty, so concurrent senders cannot stall it.
"""

import queue
import random
import threading
import time
from typing import Any

import structlog

from spanhive.contracts.config import DeliveryConfig
from spanhive.contracts.enums import BackpressureMode, SubmissionMode
from spanhive.contracts.events import Event
from spanhive.transmission.protocols import TransportProtocol

logger = structlog.get_logger(__name__)


class _FlushMarker:
    """Queue entry that is set once every entry ahead of it has been dispatched."""

    __slots__ = ("done",)

    def __init__(self) -> None:
        self.done = threading.Event()


class Transmission:
    """Queues events and delivers them to transports on a background thread.

    Backpressure modes:
    - BLOCK: enqueue blocks while the queue is full, up to block_timeout,
      then the event is dropped and counted
    - DROP: enqueue drops the event immediately when the queue is full

    Delivery failures never propagate to callers of send()/send_presampled().
    They are logged and reflected in health_metrics.

    Example:
        >>> transmission = Transmission(DeliveryConfig.default(), transports=[MemoryTransport()])
        >>> transmission.send_presampled(event)
        >>> transmission.close()
    """

    _LOG_INTERVAL = 100

    def __init__(
        self,
        config: DeliveryConfig,
        transports: list[TransportProtocol],
        *,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize and start the dispatch thread.

        Args:
            config: Runtime delivery configuration
            transports: Configured transport instances. May be empty
                (events are accepted and discarded).
            rng: Random source for send() sampling. Defaults to a fresh
                random.Random().
        """
        self._config = config
        self._transports = transports
        self._rng = rng or random.Random()
        self._rng_lock = threading.Lock()

        # Written from caller threads
        self._metrics_lock = threading.Lock()
        self._events_enqueued = 0
        self._events_sampled_out = 0
        self._events_dropped = 0
        self._events_rejected = 0
        self._last_logged_drop_count = 0

        # Written from the dispatch thread only
        self._events_dispatched = 0
        self._transport_failures: dict[str, int] = {}

        self._transport_lock = threading.Lock()
        self._close_lock = threading.Lock()
        self._closed = False
        self._shutdown_event = threading.Event()
        # Guards the shutdown check and counts callers between that check and
        # their put, so close() can hold the sentinel back until they finish.
        self._submit_cond = threading.Condition()
        self._puts_in_flight = 0
        self._dispatch_thread_ready = threading.Event()
        self._last_flush = time.monotonic()

        self._queue: queue.Queue[Event | _FlushMarker | None] = queue.Queue(maxsize=config.queue_size)

        # Daemon so an unclosed Transmission cannot hang interpreter exit;
        # close() is the drain point.
        self._dispatch_thread = threading.Thread(
            target=self._dispatch_loop,
            name="spanhive-transmission",
            daemon=True,
        )
        self._dispatch_thread.start()
        self._dispatch_thread_ready.wait(timeout=5.0)

    # ------------------------------------------------------------------
    # Submission (caller threads)
    # ------------------------------------------------------------------

    def send(self, event: Event) -> None:
        """Submit an event, keeping it with probability 1/sample_rate.

        Events discarded by sampling are counted in events_sampled_out.
        """
        if not self._accept(event):
            return
        if event.sample_rate > 1 and self._should_sample_out(event.sample_rate):
            with self._metrics_lock:
                self._events_sampled_out += 1
            return
        self._enqueue(event, SubmissionMode.SAMPLED)

    def send_presampled(self, event: Event) -> None:
        """Submit an event whose retention was already decided by the caller.

        No sampling is applied; the event's sample_rate is transmitted as-is
        for downstream count reconstruction.
        """
        if not self._accept(event):
            return
        self._enqueue(event, SubmissionMode.PRESAMPLED)

    def _should_sample_out(self, sample_rate: int) -> bool:
        # random.Random is not documented as thread-safe for shared instances
        with self._rng_lock:
            return self._rng.randrange(sample_rate) != 0

    def _accept(self, event: Event) -> bool:
        """Validate an event at the boundary and take ownership of it."""
        if event.submitted:
            self._reject(event, "event already submitted")
            return False
        event.submitted = True

        if not event.write_key:
            self._reject(event, "missing write key")
            return False
        if not event.dataset:
            self._reject(event, "missing dataset")
            return False
        if event.sample_rate < 1:
            self._reject(event, f"sample_rate must be >= 1, got {event.sample_rate}")
            return False
        return True

    def _reject(self, event: Event, reason: str) -> None:
        with self._metrics_lock:
            self._events_rejected += 1
            rejected = self._events_rejected
        # First rejection always logged, then every _LOG_INTERVAL
        if rejected == 1 or rejected % self._LOG_INTERVAL == 0:
            logger.warning(
                "Event rejected",
                reason=reason,
                dataset=event.dataset,
                rejected_total=rejected,
            )

    def _enqueue(self, event: Event, mode: SubmissionMode) -> None:
        if not self._begin_put():
            with self._metrics_lock:
                self._events_dropped += 1
                self._log_drops_if_needed(reason="transmission closed")
            return
        try:
            self._put_event(event, mode)
        finally:
            self._end_put()

    def _begin_put(self) -> bool:
        """Register a caller about to put. False once shutdown has begun."""
        with self._submit_cond:
            if self._shutdown_event.is_set():
                return False
            self._puts_in_flight += 1
            return True

    def _end_put(self) -> None:
        with self._submit_cond:
            self._puts_in_flight -= 1
            if self._puts_in_flight == 0:
                self._submit_cond.notify_all()

    def _put_event(self, event: Event, mode: SubmissionMode) -> None:
        if not self._dispatch_thread.is_alive():
            logger.critical("Dispatch thread died, dropping event", mode=mode.value)
            with self._metrics_lock:
                self._events_dropped += 1
            return

        if self._config.backpressure_mode == BackpressureMode.DROP:
            try:
                self._queue.put_nowait(event)
            except queue.Full:
                with self._metrics_lock:
                    self._events_dropped += 1
                    self._log_drops_if_needed(reason="queue full")
                return
        else:  # BLOCK
            try:
                self._queue.put(event, timeout=self._config.block_timeout)
            except queue.Full:
                logger.error(
                    "Blocking enqueue timed out - dispatch thread may be stuck",
                    block_timeout=self._config.block_timeout,
                )
                with self._metrics_lock:
                    self._events_dropped += 1
                return

        with self._metrics_lock:
            self._events_enqueued += 1

    def _log_drops_if_needed(self, reason: str) -> None:
        """Log aggregate drop message if threshold reached.

        Must be called while holding _metrics_lock.
        """
        if self._last_logged_drop_count == 0 or self._events_dropped - self._last_logged_drop_count >= self._LOG_INTERVAL:
            logger.warning(
                "Events dropped",
                reason=reason,
                dropped_since_last_log=self._events_dropped - self._last_logged_drop_count,
                dropped_total=self._events_dropped,
                backpressure_mode=self._config.backpressure_mode.value,
            )
            self._last_logged_drop_count = self._events_dropped

    # ------------------------------------------------------------------
    # Dispatch (background thread)
    # ------------------------------------------------------------------

    def _dispatch_loop(self) -> None:
        """Background thread: consume the queue and hand events to transports.

        Runs until the shutdown sentinel (None) is received. Flush markers are
        released as they are reached, since every entry queued ahead of them
        has been dispatched by then. Transports are flushed whenever
        flush_interval has elapsed since the last flush.
        """
        self._dispatch_thread_ready.set()

        while True:
            try:
                item = self._queue.get(timeout=self._config.flush_interval)
            except queue.Empty:
                self._maybe_flush()
                continue
            if item is None:
                break
            if isinstance(item, _FlushMarker):
                item.done.set()
                continue
            try:
                self._dispatch_to_transports(item)
                self._maybe_flush()
            except Exception as e:
                logger.error("Dispatch loop failed unexpectedly", error=str(e))

    def _dispatch_to_transports(self, event: Event) -> None:
        """Export to all transports with failure isolation."""
        with self._transport_lock:
            for transport in self._transports:
                try:
                    transport.export(event)
                except Exception as e:
                    self._transport_failures[transport.name] = self._transport_failures.get(transport.name, 0) + 1
                    logger.warning(
                        "Transport export failed",
                        transport=transport.name,
                        dataset=event.dataset,
                        error=str(e),
                    )
        self._events_dispatched += 1

    def _maybe_flush(self) -> None:
        if time.monotonic() - self._last_flush >= self._config.flush_interval:
            self._flush_transports()

    def _flush_transports(self) -> None:
        with self._transport_lock:
            for transport in self._transports:
                try:
                    transport.flush()
                except Exception as e:
                    logger.warning(
                        "Transport flush failed",
                        transport=transport.name,
                        error=str(e),
                    )
            self._last_flush = time.monotonic()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Snapshot of delivery health.

        - events_enqueued: Accepted into the queue
        - events_dispatched: Handed to transports by the dispatch thread
        - events_sampled_out: Discarded by send() sampling
        - events_dropped: Lost to backpressure or submitted after close
        - events_rejected: Refused at the boundary (missing destination, resubmitted)
        - transport_failures: Per-transport export failure counts
        - queue_depth / queue_maxsize: Current and maximum queue size

        Reads are approximately consistent; dispatch-thread counters may be
        slightly stale.
        """
        with self._metrics_lock:
            enqueued = self._events_enqueued
            sampled_out = self._events_sampled_out
            dropped = self._events_dropped
            rejected = self._events_rejected
        return {
            "events_enqueued": enqueued,
            "events_dispatched": self._events_dispatched,
            "events_sampled_out": sampled_out,
            "events_dropped": dropped,
            "events_rejected": rejected,
            "transport_failures": self._transport_failures.copy(),
            "queue_depth": self._queue.qsize(),
            "queue_maxsize": self._queue.maxsize,
        }

    def flush(self) -> None:
        """Wait until every event queued before the call is dispatched, then flush transports.

        Events other threads submit after the call began are not waited for,
        so recorders sharing this Transmission cannot hold each other up.
        Returns immediately once close() has begun; close() delivers the rest.
        Transport flush failures are logged, not raised.
        """
        if not self._begin_put():
            return
        marker = _FlushMarker()
        try:
            queued = self._put_control(marker)
        finally:
            self._end_put()

        if queued:
            while not marker.done.wait(timeout=0.1):
                if not self._dispatch_thread.is_alive():
                    logger.error(
                        "Dispatch thread not running - flush cannot complete",
                        queue_depth=self._queue.qsize(),
                    )
                    return
        self._flush_transports()

    def _put_control(self, item: _FlushMarker | None) -> bool:
        """Queue a flush marker or the sentinel, waiting for space while the dispatch thread runs."""
        while True:
            try:
                self._queue.put(item, timeout=0.1)
                return True
            except queue.Full:
                if not self._dispatch_thread.is_alive():
                    logger.error(
                        "Dispatch thread not running - queued events cannot be delivered",
                        queue_depth=self._queue.qsize(),
                    )
                    return False

    def close(self) -> None:
        """Deliver everything queued so far, then shut down.

        Shutdown sequence:
        1. Signal shutdown so new events are dropped instead of queued, and
           wait for callers already part way through a put
        2. Enqueue the sentinel behind every event already queued; the
           dispatch thread hands those events to transports before exiting
        3. Wait for the dispatch thread (bounded by close_timeout if set)
        4. Flush, then close, every transport

        Idempotent: later calls log at debug level and return.
        """
        with self._close_lock:
            if self._closed:
                logger.debug("Transmission already closed")
                return
            self._closed = True

        with self._submit_cond:
            self._shutdown_event.set()
            # Callers already past the shutdown check finish their put first,
            # so no event can land behind the sentinel
            self._submit_cond.wait_for(lambda: self._puts_in_flight == 0)

        self._put_control(None)

        self._dispatch_thread.join(timeout=self._config.close_timeout)
        if self._dispatch_thread.is_alive():
            logger.error(
                "Dispatch thread did not finish within close timeout",
                close_timeout=self._config.close_timeout,
                queue_depth=self._queue.qsize(),
            )

        self._flush_transports()

        logger.info("Transmission closing", **self.health_metrics)
        with self._transport_lock:
            for transport in self._transports:
                try:
                    transport.close()
                except Exception as e:
                    logger.warning(
                        "Transport close failed",
                        transport=transport.name,
                        error=str(e),
                    )
