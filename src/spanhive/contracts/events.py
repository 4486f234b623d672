# src/spanhive/contracts/events.py
"""Event and per-span decision types.

An Event is the flat record handed to the delivery subsystem. It carries
its own destination (api_host, dataset, write_key) so events from
differently configured recorders can share one Transmission.

RouteDecision and SampleDecision are produced fresh for every span by the
caller-supplied router and sampler and never persisted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

DEFAULT_API_HOST = "https://api.honeycomb.io"


@dataclass(slots=True)
class Event:
    """A single event destined for the ingestion API.

    Ownership transfers to the Transmission on submission. The submitted
    flag is set by the Transmission and guards against double delivery.

    Attributes:
        fields: Field name to value
        timestamp: Event time (the span start time for span events)
        dataset: Destination dataset
        write_key: Credential used to write to the dataset
        api_host: Base URL of the ingestion API
        sample_rate: One retained event represents this many original events
    """

    fields: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    dataset: str = ""
    write_key: str = ""
    api_host: str = DEFAULT_API_HOST
    sample_rate: int = 1
    submitted: bool = field(default=False, compare=False, repr=False)

    def add_field(self, name: str, value: Any) -> None:
        """Set a single field, replacing any previous value."""
        self.fields[name] = value

    def add(self, data: Mapping[str, Any]) -> None:
        """Set every key/value pair from a mapping."""
        for name, value in data.items():
            self.fields[name] = value

    @property
    def destination(self) -> tuple[str, str, str]:
        """Batching key: events with equal destinations go out in one request."""
        return (self.api_host, self.write_key, self.dataset)


@dataclass(frozen=True, slots=True)
class RouteDecision:
    """Per-span destination override.

    An empty string leaves the recorder's configured default in place.
    """

    dataset: str = ""
    write_key: str = ""


@dataclass(frozen=True, slots=True)
class SampleDecision:
    """Per-span retention decision.

    Attributes:
        sample_rate: Declared rate for a retained span
        drop: True discards the span without submitting anything
    """

    sample_rate: int = 1
    drop: bool = False

    @classmethod
    def keep(cls, sample_rate: int = 1) -> SampleDecision:
        return cls(sample_rate=sample_rate, drop=False)

    @classmethod
    def discard(cls) -> SampleDecision:
        return cls(sample_rate=0, drop=True)
