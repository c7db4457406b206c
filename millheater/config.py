"""Configuration for Mill heater devices.

Configuration is built once from the host's JSON options and passed
explicitly to every component that needs it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import math
import re
from typing import Any

from .const import (
    DEFAULT_CACHE_TTL_MS,
    DEFAULT_MANUFACTURER,
    DEFAULT_MAX_TEMPERATURE,
    DEFAULT_MIN_TEMPERATURE,
    DEFAULT_MODEL,
    DEFAULT_POLL_SECONDS,
    DEFAULT_TEMPERATURE_STEP,
    DEFAULT_TIMEOUT,
    PROTOCOL_HTTP,
    PROTOCOLS,
    UNIT_ALIASES,
    UNIT_CELSIUS,
    UNIT_FAHRENHEIT,
)
from .exceptions import MillHeaterValidationError

# Keys shared between the platform section and each device entry
_DEVICE_DEFAULT_KEYS = (
    "api_key",
    "protocol",
    "allow_insecure_https",
    "poll_seconds",
    "cache_ttl_ms",
    "temperature_min",
    "temperature_max",
    "temperature_step",
    "temperature_unit",
)

# Older configurations used per-accessory key names
_ALIASES = {
    "poll_interval_seconds": "poll_seconds",
    "min_temperature": "temperature_min",
    "max_temperature": "temperature_max",
}


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


def _normalise_keys(data: dict[str, Any]) -> dict[str, Any]:
    converted = {}
    for key, value in data.items():
        key = _camel_to_snake(key)
        converted[_ALIASES.get(key, key)] = value
    return converted


@dataclass(frozen=True)
class AccessoryInfo:
    """Descriptive metadata, used only for display."""

    manufacturer: str = DEFAULT_MANUFACTURER
    model: str = DEFAULT_MODEL
    firmware_revision: str = ""
    hardware_revision: str = ""
    serial_number: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> AccessoryInfo:
        """Create from dictionary."""
        if not data:
            return cls()
        converted = _normalise_keys(data)
        return cls(
            **{
                key: str(value)
                for key, value in converted.items()
                if key in cls.__dataclass_fields__ and value is not None
            }
        )

    def merged(self, **overrides: str | None) -> AccessoryInfo:
        """Return a copy with empty fields filled from overrides."""
        changes = {
            key: value
            for key, value in overrides.items()
            if value and not getattr(self, key)
        }
        return replace(self, **changes) if changes else self


@dataclass(frozen=True)
class DeviceConfig:
    """Immutable configuration of a single heater."""

    name: str
    host: str
    api_key: str | None = None
    protocol: str = PROTOCOL_HTTP
    allow_insecure_https: bool = True
    timeout: float = DEFAULT_TIMEOUT
    poll_seconds: float = DEFAULT_POLL_SECONDS
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    temperature_min: float = DEFAULT_MIN_TEMPERATURE
    temperature_max: float = DEFAULT_MAX_TEMPERATURE
    temperature_step: float = DEFAULT_TEMPERATURE_STEP
    temperature_unit: str = UNIT_CELSIUS
    info: AccessoryInfo = field(default_factory=AccessoryInfo)

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if not self.name:
            raise MillHeaterValidationError("Device name is required")
        if not self.host:
            raise MillHeaterValidationError(f"Device {self.name} has no host")
        if self.protocol not in PROTOCOLS:
            raise MillHeaterValidationError(
                f"Invalid protocol '{self.protocol}'. Must be one of: {', '.join(PROTOCOLS)}"
            )
        if isinstance(self.temperature_unit, str):
            unit = UNIT_ALIASES.get(self.temperature_unit.strip().lower())
            if unit:
                object.__setattr__(self, "temperature_unit", unit)
        if self.temperature_unit not in (UNIT_CELSIUS, UNIT_FAHRENHEIT):
            raise MillHeaterValidationError(
                f"Invalid temperature unit '{self.temperature_unit}'"
            )
        for value in (self.temperature_min, self.temperature_max, self.temperature_step):
            if not math.isfinite(value):
                raise MillHeaterValidationError("Temperature bounds must be finite")
        if self.temperature_min >= self.temperature_max:
            raise MillHeaterValidationError(
                f"temperature_min ({self.temperature_min}) must be below "
                f"temperature_max ({self.temperature_max})"
            )
        if self.temperature_step <= 0:
            raise MillHeaterValidationError("temperature_step must be positive")
        if self.poll_seconds <= 0:
            raise MillHeaterValidationError("poll_seconds must be positive")
        if self.cache_ttl_ms < 0:
            raise MillHeaterValidationError("cache_ttl_ms must not be negative")
        if self.timeout <= 0:
            raise MillHeaterValidationError("timeout must be positive")

    @property
    def cache_ttl(self) -> float:
        """Cache TTL in seconds."""
        return self.cache_ttl_ms / 1000

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], defaults: dict[str, Any] | None = None
    ) -> DeviceConfig:
        """Create from a device entry, falling back to platform level defaults."""
        converted = {**(defaults or {}), **_normalise_keys(data)}
        info = AccessoryInfo.from_dict(converted.pop("info", None))
        kwargs = {
            key: value
            for key, value in converted.items()
            if key in cls.__dataclass_fields__ and value is not None
        }
        kwargs["info"] = info
        try:
            return cls(**kwargs)
        except TypeError as err:
            raise MillHeaterValidationError(f"Invalid device configuration: {err}") from err


@dataclass(frozen=True)
class PlatformConfig:
    """Configuration of the whole platform."""

    devices: tuple[DeviceConfig, ...] = ()
    name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlatformConfig:
        """Create from the platform JSON options."""
        converted = _normalise_keys(data)
        defaults = {
            key: converted[key] for key in _DEVICE_DEFAULT_KEYS if key in converted
        }
        platform_info = converted.get("accessory_info") or {}

        devices = []
        for entry in converted.get("devices") or converted.get("accessories") or []:
            entry = _normalise_keys(entry)
            # Accessory fields may also be given inline on the device entry
            info = {
                **platform_info,
                **{k: v for k, v in entry.items() if k in AccessoryInfo.__dataclass_fields__},
                **(entry.get("info") or {}),
            }
            devices.append(DeviceConfig.from_dict({**entry, "info": info}, defaults))
        return cls(devices=tuple(devices), name=converted.get("name"))
