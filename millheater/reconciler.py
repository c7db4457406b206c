"""Map heater control status to thermostat state and plan device writes."""

from __future__ import annotations

import math

from .models import (
    ActiveState,
    ControlStatus,
    HeatingCoolingState,
    OperationMode,
    PresentationState,
)

# Host-facing valid values of TargetHeatingCoolingState
TARGET_HEATING_COOLING_STATES = (HeatingCoolingState.OFF, HeatingCoolingState.HEAT)


def is_off(status: ControlStatus) -> bool:
    """Check if the heater is off.

    An INVALID mode is not off by itself, the switched_on flag decides.
    """
    return status.operation_mode is OperationMode.OFF or not status.switched_on


def is_heating(status: ControlStatus) -> bool:
    """Check if the heater is currently producing heat."""
    if is_off(status):
        return False
    return status.current_power > 0 or status.control_signal > 0


def active_state(status: ControlStatus) -> ActiveState:
    """Return the Active characteristic value."""
    return ActiveState.INACTIVE if is_off(status) else ActiveState.ACTIVE


def target_heating_cooling_state(status: ControlStatus) -> HeatingCoolingState:
    """Return the TargetHeatingCoolingState characteristic value."""
    return HeatingCoolingState.OFF if is_off(status) else HeatingCoolingState.HEAT


def current_heating_cooling_state(status: ControlStatus) -> HeatingCoolingState:
    """Return the CurrentHeatingCoolingState characteristic value."""
    return HeatingCoolingState.HEAT if is_heating(status) else HeatingCoolingState.OFF


def to_presentation(status: ControlStatus) -> PresentationState:
    """Derive the thermostat view of a control status."""
    return PresentationState(
        is_off=is_off(status),
        is_heating=is_heating(status),
        current_temperature=status.ambient_temperature,
        target_temperature=status.set_temperature,
    )


def plan_power_write(want_on: bool, status: ControlStatus | None = None) -> OperationMode:
    """Return the operation mode to write for a power change.

    Turning on always enters CONTROL_INDIVIDUALLY, whatever the previous mode
    was. WEEKLY_PROGRAM and INDEPENDENT_DEVICE are never re-entered.
    """
    if not want_on:
        return OperationMode.OFF
    return OperationMode.CONTROL_INDIVIDUALLY


def plan_temperature_write(status: ControlStatus) -> OperationMode | None:
    """Return the mode to write before a temperature write, if any.

    The heater ignores temperature writes unless it is controlled individually.
    """
    if status.operation_mode is OperationMode.CONTROL_INDIVIDUALLY:
        return None
    return OperationMode.CONTROL_INDIVIDUALLY


def clamp_temperature(value: float, minimum: float, maximum: float, step: float) -> float:
    """Clamp a temperature to the bounds and snap it to the step.

    The result is rounded to one decimal to avoid values like 21.0000000002.
    """
    clamped = min(maximum, max(minimum, value))
    snapped = math.floor(clamped / step + 0.5) * step
    # Snapping may cross a bound that is not itself a multiple of step
    if snapped > maximum:
        snapped -= step
    elif snapped < minimum:
        snapped += step
    if not minimum <= snapped <= maximum:
        snapped = clamped
    return round(snapped, 1)
