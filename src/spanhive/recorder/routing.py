# src/spanhive/recorder/routing.py
"""Per-span destination routing.

A router is any callable taking a FinishedSpan and returning a
RouteDecision. Empty strings in the decision mean "keep the default".
"""

from collections.abc import Mapping

from spanhive.contracts.events import Event, RouteDecision
from spanhive.contracts.protocols import RouterProtocol
from spanhive.contracts.spans import FinishedSpan


def apply_route(event: Event, decision: RouteDecision) -> None:
    """Override the event's destination with the non-empty decision fields."""
    if decision.write_key:
        event.write_key = decision.write_key
    if decision.dataset:
        event.dataset = decision.dataset


def dataset_by_tag(tag: str, datasets: Mapping[str, str], default: str = "") -> RouterProtocol:
    """Router sending spans to a dataset chosen by one tag's value.

    Spans without the tag, or with a value missing from ``datasets``, go to
    ``default`` (empty keeps the recorder's configured dataset).

    Example:
        router = dataset_by_tag("service", {"checkout": "checkout-spans"})
    """
    lookup = dict(datasets)

    def route(span: FinishedSpan) -> RouteDecision:
        value = span.tags.get(tag)
        if value is None:
            return RouteDecision(dataset=default)
        return RouteDecision(dataset=lookup.get(str(value), default))

    return route
