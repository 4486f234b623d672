# tests/conftest.py
"""Shared test fixtures.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from spanhive.transmission import MemoryTransport, Transmission
from tests.factories import make_delivery_config

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture
def memory_transport() -> MemoryTransport:
    transport = MemoryTransport()
    transport.configure({})
    return transport


@pytest.fixture
def transmission(memory_transport: MemoryTransport) -> Iterator[Transmission]:
    """Transmission delivering into memory_transport, closed after the test."""
    tx = Transmission(make_delivery_config(), transports=[memory_transport])
    yield tx
    tx.close()
