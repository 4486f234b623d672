"""Shared contracts: span input, event output, decisions and runtime config.

Everything here is a leaf module with no dependency on the recorder or
transmission packages.
"""

from spanhive.contracts.config import DeliveryConfig, RecorderConfig, TransportConfig
from spanhive.contracts.enums import BackpressureMode, SubmissionMode
from spanhive.contracts.errors import SpanFormatError, TransportError
from spanhive.contracts.events import DEFAULT_API_HOST, Event, RouteDecision, SampleDecision
from spanhive.contracts.protocols import RouterProtocol, SamplerProtocol
from spanhive.contracts.spans import FinishedSpan, LogRecord, SpanContext

__all__ = [
    "DEFAULT_API_HOST",
    "BackpressureMode",
    "DeliveryConfig",
    "Event",
    "FinishedSpan",
    "LogRecord",
    "RecorderConfig",
    "RouteDecision",
    "RouterProtocol",
    "SampleDecision",
    "SamplerProtocol",
    "SpanContext",
    "SpanFormatError",
    "SubmissionMode",
    "TransportConfig",
    "TransportError",
]
