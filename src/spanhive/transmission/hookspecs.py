# src/spanhive/transmission/hookspecs.py
"""pluggy hook specifications for transports.

Usage (implementing a transport plugin):
    from spanhive.transmission.hookspecs import hookimpl

    class MyTransportPlugin:
        @hookimpl
        def spanhive_get_transports(self):
            return [MyTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from spanhive.transmission.protocols import TransportProtocol

PROJECT_NAME = "spanhive"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class SpanhiveTransportSpec:
    """Hook specifications for transport plugins."""

    @hookspec
    def spanhive_get_transports(self) -> list[type["TransportProtocol"]]:  # type: ignore[empty-body]
        """Return transport classes (not instances) implementing TransportProtocol."""
