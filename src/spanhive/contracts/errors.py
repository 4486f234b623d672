# src/spanhive/contracts/errors.py
"""Exceptions shared across spanhive.

Delivery failures are never raised to span recording call sites; these
exceptions cover configuration, discovery and input-format problems only.
"""


class SpanFormatError(ValueError):
    """Raised when serialized span data cannot be parsed into a FinishedSpan."""


class TransportError(Exception):
    """Raised when a transport encounters a configuration or discovery error.

    This is raised during transport setup (configure/discovery), NOT during
    export operations. Export operations must not raise - they log errors instead.

    Attributes:
        transport_name: Name of the transport that failed
        message: Human-readable error description
    """

    def __init__(self, transport_name: str, message: str) -> None:
        self.transport_name = transport_name
        self.message = message
        super().__init__(f"Transport '{transport_name}' failed: {message}")
