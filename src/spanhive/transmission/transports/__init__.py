"""Built-in transports.

Available transports:
- HoneycombTransport: Batched delivery to the Honeycomb batch API
- ConsoleTransport: Write events to stdout/stderr for debugging
- MemoryTransport: Keep events in memory for tests

Plugin registration:
    Transports are registered via the spanhive_get_transports hook.
    BuiltinTransportsPlugin registers all built-in transports.
"""

from spanhive.transmission.hookspecs import hookimpl
from spanhive.transmission.transports.console import ConsoleTransport
from spanhive.transmission.transports.honeycomb import HoneycombTransport
from spanhive.transmission.transports.memory import MemoryTransport


class BuiltinTransportsPlugin:
    """Plugin that registers built-in transports."""

    @hookimpl
    def spanhive_get_transports(self) -> list[type]:
        return [HoneycombTransport, ConsoleTransport, MemoryTransport]


__all__ = [
    "BuiltinTransportsPlugin",
    "ConsoleTransport",
    "HoneycombTransport",
    "MemoryTransport",
]
