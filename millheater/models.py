"""Data models for the Mill heater library."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from .const import STATUS_OK
from .exceptions import MillHeaterProtocolError


class OperationMode(str, Enum):
    """Operation mode reported by the heater."""

    OFF = "Off"
    WEEKLY_PROGRAM = "Weekly program"
    INDEPENDENT_DEVICE = "Independent device"
    CONTROL_INDIVIDUALLY = "Control individually"
    INVALID = "Invalid"

    @classmethod
    def parse(cls, value: Any) -> OperationMode:
        """Return the mode for a raw device string, INVALID when unknown.

        Matching is case-sensitive, so "OFF" is not "Off".
        """
        try:
            return cls(value)
        except ValueError:
            return cls.INVALID


class ActiveState(IntEnum):
    """Values of the Active characteristic."""

    INACTIVE = 0
    ACTIVE = 1


class HeatingCoolingState(IntEnum):
    """Heating/cooling state values exposed to the host (OFF and HEAT only)."""

    OFF = 0
    HEAT = 1


class SessionState(str, Enum):
    """Synchronisation state of a device session."""

    UNKNOWN = "unknown"
    SYNCED = "synced"
    DEGRADED = "degraded"


class Characteristic(str, Enum):
    """Thermostat characteristics a session publishes to the host."""

    NAME = "Name"
    ACTIVE = "Active"
    CURRENT_TEMPERATURE = "CurrentTemperature"
    TARGET_TEMPERATURE = "TargetTemperature"
    CURRENT_HEATING_COOLING_STATE = "CurrentHeatingCoolingState"
    TARGET_HEATING_COOLING_STATE = "TargetHeatingCoolingState"
    TEMPERATURE_DISPLAY_UNITS = "TemperatureDisplayUnits"


@dataclass(frozen=True)
class ControlStatus:
    """A point-in-time control status snapshot read from a heater."""

    ambient_temperature: float
    current_power: float
    control_signal: float
    set_temperature: float
    switched_on: bool
    connected_to_cloud: bool
    operation_mode: OperationMode
    status: str = STATUS_OK

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ControlStatus:
        """Create from the /control-status JSON body."""
        if data.get("status") != STATUS_OK:
            raise MillHeaterProtocolError(
                f"Control status is not valid: status={data.get('status')!r}"
            )
        try:
            return cls(
                ambient_temperature=float(data["ambient_temperature"]),
                current_power=float(data.get("current_power") or 0),
                control_signal=float(data.get("control_signal") or 0),
                set_temperature=float(data["set_temperature"]),
                switched_on=bool(data["switched_on"]),
                connected_to_cloud=bool(data.get("connected_to_cloud", False)),
                operation_mode=OperationMode.parse(data.get("operation_mode")),
                status=data["status"],
            )
        except (KeyError, TypeError, ValueError) as err:
            raise MillHeaterProtocolError(f"Malformed control status: {err}") from err


@dataclass(frozen=True)
class DeviceSummary:
    """Summary returned by the /status endpoint."""

    status: str
    name: str | None = None
    version: str | None = None
    mac_address: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeviceSummary:
        """Create from the /status JSON body."""
        return cls(
            status=data.get("status", STATUS_OK),
            name=data.get("name"),
            version=data.get("version"),
            mac_address=data.get("mac_address"),
        )


@dataclass(frozen=True)
class CachedSnapshot:
    """A control status together with the monotonic time it was fetched."""

    value: ControlStatus
    fetched_at: float


@dataclass(frozen=True)
class PresentationState:
    """Thermostat view of a heater, derived from a ControlStatus."""

    is_off: bool
    is_heating: bool
    current_temperature: float
    target_temperature: float
