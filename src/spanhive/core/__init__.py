"""Core infrastructure: configuration loading and logging setup."""

from spanhive.core.config import (
    DeliverySettings,
    HoneycombSettings,
    LoggingSettings,
    SpanhiveSettings,
    TransportSettings,
    load_settings,
)
from spanhive.core.logging import configure_logging, get_logger

__all__ = [
    "DeliverySettings",
    "HoneycombSettings",
    "LoggingSettings",
    "SpanhiveSettings",
    "TransportSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
