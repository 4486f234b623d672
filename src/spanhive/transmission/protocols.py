# src/spanhive/transmission/protocols.py
"""Protocol definitions for transports.

Transports are responsible for shipping events out of the process: to the
ingestion API, to the console, or into memory for tests.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from spanhive.contracts.events import Event


@runtime_checkable
class TransportProtocol(Protocol):
    """Protocol for transports.

    Lifecycle:
        1. Discovery: spanhive_get_transports hook returns transport classes
        2. Instantiation: create_transmission() creates instances
        3. Configuration: configure() called with transport-specific options
        4. Operation: export() called for each event (must not raise)
        5. Shutdown: flush() then close() called when the Transmission closes

    Error handling:
        - configure() MUST raise TransportError on invalid config
        - export() MUST NOT raise - log errors and continue
        - close() MUST be idempotent - safe to call multiple times
    """

    @property
    def name(self) -> str:
        """Transport name for configuration reference.

            delivery:
              transports:
                - name: honeycomb  # matches this property
        """
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the transport with its options from settings.

        Raises:
            TransportError: If configuration is invalid or incomplete
        """
        ...

    def export(self, event: "Event") -> None:
        """Export a single event.

        Implementations may buffer events for batch delivery; flush()
        delivers whatever is buffered.

        Thread Safety:
            The Transmission serializes every call into a transport, so
            export() never runs concurrently with itself or with flush().
        """
        ...

    def flush(self) -> None:
        """Deliver any buffered events. No-op for unbuffered transports."""
        ...

    def close(self) -> None:
        """Release any resources held by the transport. Must be idempotent."""
        ...
