# src/spanhive/recorder/sampling.py
"""Per-span sampling.

Sampling is decided here, above the delivery layer, because the spans of
one trace must be kept or dropped together. Uniform random sampling in the
Transmission cannot guarantee that; a sampler that looks at the trace ID
can.

A sampler is any callable taking a FinishedSpan and returning either a
SampleDecision or a ``(sample_rate, drop)`` tuple.
"""

from spanhive.contracts.events import SampleDecision
from spanhive.contracts.protocols import SamplerProtocol
from spanhive.contracts.spans import FinishedSpan


def resolve_sample(result: SampleDecision | tuple[int, bool]) -> SampleDecision:
    """Normalize a sampler result.

    A retained decision with a rate below 1 is raised to 1, so retained
    events always carry a positive rate.

    Raises:
        TypeError: If the sampler returned something other than a
            SampleDecision or a (rate, drop) pair
    """
    if isinstance(result, SampleDecision):
        decision = result
    elif isinstance(result, tuple) and len(result) == 2:
        sample_rate, drop = result
        decision = SampleDecision(sample_rate=int(sample_rate), drop=bool(drop))
    else:
        raise TypeError(f"sampler must return SampleDecision or (sample_rate, drop), got {type(result).__name__}")

    if not decision.drop and decision.sample_rate < 1:
        return SampleDecision(sample_rate=1, drop=False)
    return decision


def trace_id_sampler(sample_rate: int) -> SamplerProtocol:
    """Keep one trace in ``sample_rate``, chosen by trace ID.

    Every span of a trace gets the same decision. Retained spans declare
    ``sample_rate``.

    Raises:
        ValueError: If sample_rate < 1
    """
    if sample_rate < 1:
        raise ValueError(f"sample_rate must be >= 1, got {sample_rate}")

    def sample(span: FinishedSpan) -> SampleDecision:
        if span.context.trace_id % sample_rate == 0:
            return SampleDecision.keep(sample_rate)
        return SampleDecision.discard()

    return sample


def keep_all_sampler(span: FinishedSpan) -> SampleDecision:
    """Retain every span at rate 1."""
    return SampleDecision.keep(1)
