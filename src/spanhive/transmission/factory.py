# src/spanhive/transmission/factory.py
"""Factory functions for creating a Transmission from configuration.

Glue between DeliveryConfig and the runtime Transmission:
1. Discover transport classes via pluggy hooks
2. Instantiate and configure the transports named in the config
3. Start the Transmission with those transports

Usage:
    config = DeliveryConfig.from_settings(settings.delivery)
    transmission = create_transmission(config)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from spanhive.contracts.config import DeliveryConfig
from spanhive.contracts.errors import TransportError
from spanhive.transmission.hookspecs import PROJECT_NAME, SpanhiveTransportSpec
from spanhive.transmission.manager import Transmission
from spanhive.transmission.protocols import TransportProtocol
from spanhive.transmission.transports import BuiltinTransportsPlugin

logger = structlog.get_logger(__name__)


def _resolve_transport_name(transport_class: type[TransportProtocol]) -> str:
    """Resolve a transport's name from its class-level _name, or an instance.

    Raises:
        TransportError: If the resolved name is not a non-empty string
    """
    class_name = transport_class.__name__

    class_name_hint = transport_class.__dict__.get("_name")
    if class_name_hint is not None:
        if type(class_name_hint) is str and class_name_hint != "":
            return class_name_hint
        raise TransportError(
            class_name,
            f"Transport class attribute _name must be a non-empty string, got {class_name_hint!r}",
        )

    try:
        instance = transport_class()
    except Exception as e:
        raise TransportError(
            class_name,
            f"Failed to instantiate transport class during discovery: {e}",
        ) from e

    resolved_name = instance.name
    if type(resolved_name) is not str or resolved_name == "":
        raise TransportError(
            class_name,
            f"Transport name must be a non-empty string, got {resolved_name!r}",
        )
    return resolved_name


def discover_transports(transport_plugins: Iterable[Any] = ()) -> dict[str, type[TransportProtocol]]:
    """Build the name -> class registry of available transports.

    Registers the built-in transports plus any plugin objects provided by
    the caller, then calls every ``spanhive_get_transports`` hook.

    Raises:
        TransportError: If a plugin fails validation, a hook misbehaves, or
            two transports share a name
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(SpanhiveTransportSpec)

    for plugin in [BuiltinTransportsPlugin(), *list(transport_plugins)]:
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except (pluggy.PluginValidationError, ValueError) as e:
            # PluginValidationError: hook spec mismatch
            # ValueError: plugin object or name already registered
            if isinstance(e, pluggy.PluginValidationError):
                plugin_manager.unregister(plugin=plugin)
            raise TransportError(
                "transport_plugins",
                f"Invalid transport plugin {type(plugin).__name__}: {e}",
            ) from e

    registry: dict[str, type[TransportProtocol]] = {}
    for hook_impl in plugin_manager.hook.spanhive_get_transports.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        try:
            transports = hook_impl.function()
        except Exception as e:
            raise TransportError(
                "transport_plugins",
                f"Transport plugin {plugin_name} failed in spanhive_get_transports: {e}",
            ) from e

        if transports is None or isinstance(transports, str | bytes):
            raise TransportError(
                "transport_plugins",
                f"spanhive_get_transports in plugin {plugin_name} returned {type(transports).__name__}; "
                "expected iterable of transport classes",
            )
        try:
            transport_iter = iter(transports)
        except TypeError as e:
            raise TransportError(
                "transport_plugins",
                f"spanhive_get_transports in plugin {plugin_name} returned {type(transports).__name__}; "
                "expected iterable of transport classes",
            ) from e

        for transport_class in transport_iter:
            transport_name = _resolve_transport_name(transport_class)
            if transport_name in registry:
                raise TransportError(
                    transport_name,
                    f"Duplicate transport name '{transport_name}' discovered: "
                    f"{registry[transport_name].__name__} and {transport_class.__name__}",
                )
            registry[transport_name] = transport_class

    return registry


def create_transmission(
    config: DeliveryConfig,
    *,
    transport_plugins: Iterable[Any] = (),
) -> Transmission:
    """Create a running Transmission from runtime configuration.

    Args:
        config: Runtime delivery configuration
        transport_plugins: Optional extra plugin objects providing
            ``spanhive_get_transports`` hooks

    Raises:
        TransportError: If discovery fails, an unknown transport is
            configured, or a transport rejects its options
    """
    registry = discover_transports(transport_plugins)

    transports: list[TransportProtocol] = []
    for transport_config in config.transport_configs:
        try:
            transport_class = registry[transport_config.name]
        except KeyError:
            raise TransportError(
                transport_config.name,
                f"Unknown transport. Available transports: {sorted(registry)}",
            ) from None

        transport = transport_class()
        transport.configure(transport_config.options)
        transports.append(transport)
        logger.debug(
            "transport_configured",
            transport=transport_config.name,
            options_keys=list(transport_config.options.keys()),
        )

    if not transports:
        logger.warning("transmission_no_transports", message="No transports configured; events will be discarded")

    return Transmission(config, transports=transports)
