# src/spanhive/contracts/protocols.py
"""Call signatures for the caller-supplied router and sampler.

Both are plain callables; these protocols exist for type checkers and
documentation. Implementations may be invoked concurrently from several
span-finishing threads and must be safe for that.
"""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from spanhive.contracts.events import RouteDecision, SampleDecision
    from spanhive.contracts.spans import FinishedSpan


class RouterProtocol(Protocol):
    """Choose a destination override for one span."""

    def __call__(self, span: "FinishedSpan") -> "RouteDecision": ...


class SamplerProtocol(Protocol):
    """Decide whether to retain one span and at which declared rate.

    May return a SampleDecision or a ``(sample_rate, drop)`` tuple.
    """

    def __call__(self, span: "FinishedSpan") -> "SampleDecision | tuple[int, bool]": ...
