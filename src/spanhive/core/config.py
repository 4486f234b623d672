# src/spanhive/core/config.py
"""
Configuration schema and loading for spanhive.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from spanhive.contracts.config import (
    DEFAULT_BLOCK_TIMEOUT,
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_FLUSH_INTERVAL,
    DEFAULT_QUEUE_SIZE,
)
from spanhive.contracts.events import DEFAULT_API_HOST


class HoneycombSettings(BaseModel):
    """Default destination and credential for recorded spans.

    Both write_key and dataset may be left empty; events without them are
    rejected by the Transmission rather than at load time.
    """

    model_config = {"frozen": True}

    write_key: str = Field(default="", description="Team write key used to authenticate writes")
    dataset: str = Field(default="", description="Default destination dataset for span events")
    api_host: str = Field(default=DEFAULT_API_HOST, description="Base URL of the ingestion API")

    @field_validator("api_host")
    @classmethod
    def validate_api_host(cls, v: str) -> str:
        """API host must be an http(s) URL without a trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"api_host must start with http:// or https://, got {v!r}")
        return v.rstrip("/")


class TransportSettings(BaseModel):
    """A transport entry in the delivery configuration."""

    model_config = {"frozen": True}

    name: str = Field(description="Registered transport name (honeycomb, console, memory)")
    options: dict[str, Any] = Field(default_factory=dict, description="Transport-specific options")


class DeliverySettings(BaseModel):
    """Asynchronous delivery (queue, backpressure, transports) configuration."""

    model_config = {"frozen": True}

    backpressure_mode: Literal["block", "drop"] = Field(
        default="block",
        description="Behavior when the queue is full: block the caller or drop the event",
    )
    queue_size: int = Field(default=DEFAULT_QUEUE_SIZE, gt=0, description="Maximum queued events")
    block_timeout: float = Field(
        default=DEFAULT_BLOCK_TIMEOUT,
        gt=0,
        description="Seconds a blocking enqueue waits before the event is dropped",
    )
    flush_interval: float = Field(
        default=DEFAULT_FLUSH_INTERVAL,
        gt=0,
        description="Idle seconds after which buffered batches are sent",
    )
    close_timeout: float | None = Field(
        default=DEFAULT_CLOSE_TIMEOUT,
        gt=0,
        description="Seconds close() waits for in-flight events (null waits indefinitely)",
    )
    transports: list[TransportSettings] = Field(
        default_factory=lambda: [TransportSettings(name="honeycomb")],
        description="Transports every event is handed to",
    )

    @field_validator("backpressure_mode", mode="before")
    @classmethod
    def normalize_backpressure_mode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.lower()
        return v

    @field_validator("transports")
    @classmethod
    def validate_unique_transport_names(cls, v: list[TransportSettings]) -> list[TransportSettings]:
        """Each transport may appear once."""
        names = [t.name for t in v]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate transport name(s): {sorted(duplicates)}")
        return v


class LoggingSettings(BaseModel):
    """Structured logging configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class SpanhiveSettings(BaseModel):
    """Top-level spanhive configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    honeycomb: HoneycombSettings = Field(default_factory=HoneycombSettings)
    delivery: DeliverySettings = Field(default_factory=DeliverySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """
    import os

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default = match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            # No env var and no default - keep original
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lowercase_keys(value: Any) -> Any:
    """Lowercase keys at every level.

    Nested keys set through SPANHIVE_* environment variables arrive
    upper-cased, while every settings field and transport option is lowercase.
    """
    if isinstance(value, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lowercase_keys(item) for item in value]
    return value


def load_settings(config_path: Path) -> SpanhiveSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (SPANHIVE_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: SPANHIVE_HONEYCOMB__WRITE_KEY for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated SpanhiveSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="SPANHIVE",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _lowercase_keys(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    raw_config = _expand_env_vars(raw_config)

    return SpanhiveSettings(**raw_config)
