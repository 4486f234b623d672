"""Delivery subsystem: queueing, batching and transport of events.

Components:
- manager: Transmission, the asynchronous delivery queue and dispatcher
- buffer: BoundedBuffer for per-destination batching
- protocols: TransportProtocol for implementing transports
- hookspecs: pluggy hooks for transport discovery
- factory: create_transmission() from DeliveryConfig
- transports: built-in honeycomb, console and memory transports
"""

from spanhive.transmission.buffer import BoundedBuffer
from spanhive.transmission.factory import create_transmission, discover_transports
from spanhive.transmission.manager import Transmission
from spanhive.transmission.protocols import TransportProtocol
from spanhive.transmission.transports import ConsoleTransport, HoneycombTransport, MemoryTransport

__all__ = [
    "BoundedBuffer",
    "ConsoleTransport",
    "HoneycombTransport",
    "MemoryTransport",
    "Transmission",
    "TransportProtocol",
    "create_transmission",
    "discover_transports",
]
