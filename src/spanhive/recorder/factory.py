# src/spanhive/recorder/factory.py
"""Build a ready-to-use SpanRecorder from settings."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import structlog

from spanhive.contracts.config import DeliveryConfig, RecorderConfig
from spanhive.recorder.recorder import SpanRecorder
from spanhive.transmission.factory import create_transmission

if TYPE_CHECKING:
    from spanhive.contracts.protocols import RouterProtocol, SamplerProtocol
    from spanhive.core.config import SpanhiveSettings

logger = structlog.get_logger(__name__)


def create_span_recorder(
    settings: SpanhiveSettings,
    *,
    router: RouterProtocol | None = None,
    sampler: SamplerProtocol | None = None,
    transport_plugins: Iterable[Any] = (),
) -> SpanRecorder:
    """Create a SpanRecorder that owns a freshly started Transmission.

    Missing write key or dataset is not an error here; it is logged and
    events are rejected when submitted.

    Raises:
        TransportError: If a configured transport is unknown or misconfigured
    """
    recorder_config = RecorderConfig.from_settings(settings.honeycomb, router=router, sampler=sampler)
    if not recorder_config.write_key or not recorder_config.dataset:
        logger.warning(
            "Span recorder created without write key or dataset; events without a routed destination will be rejected",
            has_write_key=bool(recorder_config.write_key),
            has_dataset=bool(recorder_config.dataset),
        )

    transmission = create_transmission(
        DeliveryConfig.from_settings(settings.delivery),
        transport_plugins=transport_plugins,
    )
    return SpanRecorder(recorder_config, transmission, owns_transmission=True)
