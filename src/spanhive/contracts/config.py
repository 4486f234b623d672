# src/spanhive/contracts/config.py
"""Runtime configuration dataclasses.

These are the frozen, validated forms of the Pydantic settings in
spanhive.core.config. Runtime config never changes after construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from spanhive.contracts.enums import BackpressureMode
from spanhive.contracts.events import DEFAULT_API_HOST

if TYPE_CHECKING:
    from spanhive.contracts.protocols import RouterProtocol, SamplerProtocol
    from spanhive.core.config import DeliverySettings, HoneycombSettings

# Internal defaults not exposed as user settings
DEFAULT_QUEUE_SIZE = 10_000
DEFAULT_BLOCK_TIMEOUT = 30.0
DEFAULT_FLUSH_INTERVAL = 0.1
DEFAULT_CLOSE_TIMEOUT: float | None = None


@dataclass(frozen=True, slots=True)
class RecorderConfig:
    """Configuration for a SpanRecorder.

    Zero values are valid. A missing write key or dataset is not an error
    here; events without them are rejected when submitted.

    Attributes:
        write_key: Default credential for every event
        dataset: Default destination dataset
        api_host: Base URL of the ingestion API
        router: Optional per-span destination override
        sampler: Optional per-span retention decision
    """

    write_key: str = ""
    dataset: str = ""
    api_host: str = DEFAULT_API_HOST
    router: RouterProtocol | None = None
    sampler: SamplerProtocol | None = None

    @classmethod
    def from_settings(
        cls,
        settings: HoneycombSettings,
        *,
        router: RouterProtocol | None = None,
        sampler: SamplerProtocol | None = None,
    ) -> RecorderConfig:
        """Factory from HoneycombSettings. Router and sampler are code, not config."""
        return cls(
            write_key=settings.write_key,
            dataset=settings.dataset,
            api_host=settings.api_host,
            router=router,
            sampler=sampler,
        )


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Configuration for a single transport.

    Example YAML that produces TransportConfig instances:
        delivery:
          transports:
            - name: honeycomb
              options:
                batch_size: 50
            - name: console
              options:
                format: pretty
    """

    name: str
    options: dict[str, Any]

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("transport name cannot be empty")


@dataclass(frozen=True, slots=True)
class DeliveryConfig:
    """Runtime configuration for the Transmission.

    Attributes:
        backpressure_mode: BLOCK or DROP when the queue is full
        queue_size: Maximum number of queued events
        block_timeout: Seconds a BLOCK-mode enqueue waits before dropping
        flush_interval: Idle seconds after which transports are flushed
        close_timeout: Seconds close() waits for the dispatch thread, None waits forever
        transport_configs: Transports to instantiate
    """

    backpressure_mode: BackpressureMode
    queue_size: int
    block_timeout: float
    flush_interval: float
    close_timeout: float | None
    transport_configs: tuple[TransportConfig, ...]

    def __post_init__(self) -> None:
        if self.queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {self.queue_size}")
        if self.block_timeout <= 0:
            raise ValueError(f"block_timeout must be > 0, got {self.block_timeout}")
        if self.flush_interval <= 0:
            raise ValueError(f"flush_interval must be > 0, got {self.flush_interval}")
        if self.close_timeout is not None and self.close_timeout <= 0:
            raise ValueError(f"close_timeout must be > 0 or None, got {self.close_timeout}")

    @classmethod
    def default(cls) -> DeliveryConfig:
        """Default delivery configuration: blocking, one honeycomb transport."""
        return cls(
            backpressure_mode=BackpressureMode.BLOCK,
            queue_size=DEFAULT_QUEUE_SIZE,
            block_timeout=DEFAULT_BLOCK_TIMEOUT,
            flush_interval=DEFAULT_FLUSH_INTERVAL,
            close_timeout=DEFAULT_CLOSE_TIMEOUT,
            transport_configs=(TransportConfig(name="honeycomb", options={}),),
        )

    @classmethod
    def from_settings(cls, settings: DeliverySettings) -> DeliveryConfig:
        """Factory from DeliverySettings config model.

        Raises:
            ValueError: If backpressure_mode is not a known mode
        """
        backpressure_mode = BackpressureMode(settings.backpressure_mode.lower())
        transport_configs = tuple(TransportConfig(name=t.name, options=dict(t.options)) for t in settings.transports)
        return cls(
            backpressure_mode=backpressure_mode,
            queue_size=settings.queue_size,
            block_timeout=settings.block_timeout,
            flush_interval=settings.flush_interval,
            close_timeout=settings.close_timeout,
            transport_configs=transport_configs,
        )
