"""Device session binding one heater to a host thermostat accessory."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
import logging
import math
import time
from typing import Any, Protocol

from . import reconciler
from .cache import StatusCache
from .config import AccessoryInfo, DeviceConfig
from .const import (
    DISPLAY_UNITS_CELSIUS,
    DISPLAY_UNITS_FAHRENHEIT,
    INITIAL_CURRENT_TEMPERATURE,
    INITIAL_TARGET_TEMPERATURE,
    UNIT_FAHRENHEIT,
)
from .exceptions import MillHeaterError, MillHeaterValidationError
from .millheater import MillHeater
from .models import (
    ActiveState,
    Characteristic,
    ControlStatus,
    HeatingCoolingState,
    PresentationState,
    SessionState,
)

_LOGGER = logging.getLogger(__name__)


class CharacteristicSink(Protocol):
    """Host side of a thermostat accessory."""

    def update_characteristic(self, characteristic: Characteristic, value: Any) -> None:
        """Push a new characteristic value to the host."""

    def set_characteristic_properties(
        self, characteristic: Characteristic, **props: Any
    ) -> None:
        """Restrict the value range of a characteristic."""

    def set_accessory_information(self, info: AccessoryInfo) -> None:
        """Publish descriptive accessory metadata."""


class DeviceSession:
    """Own the cache, poll loop and write protocol of a single heater."""

    def __init__(
        self,
        config: DeviceConfig,
        client: MillHeater,
        sink: CharacteristicSink,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the session.

        Args:
            config: Immutable device configuration
            client: Client for the heater's REST API
            sink: Host accessory receiving characteristic updates
            clock: Monotonic clock used by the status cache
        """
        self.config = config
        self.client = client
        self._sink = sink
        self.cache = StatusCache(client.read_control_status, config.cache_ttl, clock)
        self.state = SessionState.UNKNOWN
        self.presentation = PresentationState(
            is_off=False,
            is_heating=False,
            current_temperature=INITIAL_CURRENT_TEMPERATURE,
            target_temperature=INITIAL_TARGET_TEMPERATURE,
        )

        self._write_lock = asyncio.Lock()
        self._pending_writes = 0
        self._writes_idle = asyncio.Event()
        self._writes_idle.set()
        self._active_write: asyncio.Event | None = None
        self._stop_event = asyncio.Event()
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        """Return the configured device name."""
        return self.config.name

    @property
    def write_in_progress(self) -> bool:
        """Check if a write sequence is running or waiting to run."""
        return self._pending_writes > 0

    def configure_accessory(self) -> None:
        """Set name, display unit and value ranges on the host accessory."""
        cfg = self.config
        self._sink.set_accessory_information(cfg.info)
        self._sink.update_characteristic(Characteristic.NAME, cfg.name)
        self._sink.update_characteristic(
            Characteristic.TEMPERATURE_DISPLAY_UNITS,
            DISPLAY_UNITS_FAHRENHEIT
            if cfg.temperature_unit == UNIT_FAHRENHEIT
            else DISPLAY_UNITS_CELSIUS,
        )
        self._sink.set_characteristic_properties(
            Characteristic.TARGET_TEMPERATURE,
            min_value=cfg.temperature_min,
            max_value=cfg.temperature_max,
            min_step=cfg.temperature_step,
        )
        self._sink.set_characteristic_properties(
            Characteristic.TARGET_HEATING_COOLING_STATE,
            valid_values=list(reconciler.TARGET_HEATING_COOLING_STATES),
        )

    async def start(self) -> None:
        """Configure the accessory and start polling."""
        self.configure_accessory()
        if self._poll_task is None:
            self._stop_event.clear()
            self._poll_task = asyncio.create_task(
                self._poll_loop(), name=f"millheater-poll-{self.name}"
            )

    async def stop(self) -> None:
        """Stop polling and wait for running fetches and writes to finish."""
        self._stop_event.set()
        if self._poll_task is not None:
            await self._poll_task
            self._poll_task = None
        await self._writes_idle.wait()
        await self.cache.drain()
        self.cache.clear()
        _LOGGER.debug("[%s] Session stopped", self.name)

    async def _poll_loop(self) -> None:
        await self._poll_tick()
        while not self._stop_event.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.config.poll_seconds
                )
                break
            if self.write_in_progress:
                _LOGGER.debug("[%s] Write in progress, skipping poll", self.name)
                continue
            await self._poll_tick()

    async def _poll_tick(self) -> None:
        try:
            await self.poll_once()
        except Exception:  # noqa: BLE001
            self._mark_degraded()
            _LOGGER.exception("[%s] Unexpected error while polling", self.name)

    async def poll_once(self) -> None:
        """Fetch the status and publish it, logging failures."""
        try:
            status = await self.cache.get_fresh()
        except MillHeaterError as err:
            self._mark_degraded()
            _LOGGER.warning("[%s] Poll failed: %s", self.name, err)
            return
        self._publish(status)

    def _mark_degraded(self) -> None:
        if self.state is not SessionState.DEGRADED:
            _LOGGER.debug("[%s] Session degraded", self.name)
        self.state = SessionState.DEGRADED

    def _publish(self, status: ControlStatus) -> None:
        """Store the derived state and push it to the host."""
        self.state = SessionState.SYNCED
        self.presentation = presentation = reconciler.to_presentation(status)
        self._sink.update_characteristic(
            Characteristic.ACTIVE,
            ActiveState.INACTIVE if presentation.is_off else ActiveState.ACTIVE,
        )
        self._sink.update_characteristic(
            Characteristic.CURRENT_TEMPERATURE, presentation.current_temperature
        )
        self._sink.update_characteristic(
            Characteristic.TARGET_TEMPERATURE, presentation.target_temperature
        )
        self._sink.update_characteristic(
            Characteristic.CURRENT_HEATING_COOLING_STATE,
            HeatingCoolingState.HEAT if presentation.is_heating else HeatingCoolingState.OFF,
        )
        self._sink.update_characteristic(
            Characteristic.TARGET_HEATING_COOLING_STATE,
            HeatingCoolingState.OFF if presentation.is_off else HeatingCoolingState.HEAT,
        )

    async def _read_presentation(self) -> PresentationState:
        """Return the current state, falling back to the last known one."""
        active = self._active_write
        if active is not None:
            # Wait for the running sequence only, not the queued ones
            await active.wait()
        try:
            status = await self.cache.get_fresh()
        except MillHeaterError as err:
            self._mark_degraded()
            _LOGGER.debug("[%s] Serving last known state: %s", self.name, err)
            return self.presentation
        if self.state is not SessionState.SYNCED or reconciler.to_presentation(
            status
        ) != self.presentation:
            self._publish(status)
        return self.presentation

    # Getters

    async def get_active(self) -> ActiveState:
        """Return the Active characteristic."""
        state = await self._read_presentation()
        return ActiveState.INACTIVE if state.is_off else ActiveState.ACTIVE

    async def get_current_temperature(self) -> float:
        """Return the CurrentTemperature characteristic."""
        return (await self._read_presentation()).current_temperature

    async def get_target_temperature(self) -> float:
        """Return the TargetTemperature characteristic."""
        return (await self._read_presentation()).target_temperature

    async def get_target_heating_cooling_state(self) -> HeatingCoolingState:
        """Return the TargetHeatingCoolingState characteristic."""
        state = await self._read_presentation()
        return HeatingCoolingState.OFF if state.is_off else HeatingCoolingState.HEAT

    async def get_current_heating_cooling_state(self) -> HeatingCoolingState:
        """Return the CurrentHeatingCoolingState characteristic."""
        state = await self._read_presentation()
        return HeatingCoolingState.HEAT if state.is_heating else HeatingCoolingState.OFF

    # Setters

    async def set_active(self, value: int) -> None:
        """Handle a write to the Active characteristic."""
        try:
            want_on = ActiveState(value) is ActiveState.ACTIVE
        except ValueError as err:
            raise MillHeaterValidationError(f"Invalid Active value: {value!r}") from err
        await self.set_power(want_on)

    async def set_target_heating_cooling_state(self, value: int) -> None:
        """Handle a write to the TargetHeatingCoolingState characteristic."""
        if value not in reconciler.TARGET_HEATING_COOLING_STATES:
            raise MillHeaterValidationError(
                f"Invalid TargetHeatingCoolingState value: {value!r}"
            )
        await self.set_power(value == HeatingCoolingState.HEAT)

    async def set_power(self, want_on: bool) -> None:
        """Turn the heater on or off."""
        async with self._write_sequence():
            status = await self.cache.get_fresh()
            mode = reconciler.plan_power_write(want_on, status)
            _LOGGER.debug("[%s] Power %s, writing mode %s", self.name, want_on, mode.value)
            await self.client.set_operation_mode(mode)
            if want_on:
                # A bare mode switch does not guarantee a setpoint is in effect
                await self.client.set_target_temperature(
                    self._clamp(status.set_temperature)
                )
            self._publish(await self.cache.force_refresh())

    async def set_target_temperature(self, value: Any) -> None:
        """Clamp the value and write it, entering individual control first."""
        try:
            value = float(value)
        except (TypeError, ValueError) as err:
            raise MillHeaterValidationError(f"Invalid temperature: {value!r}") from err
        if not math.isfinite(value):
            raise MillHeaterValidationError(f"Invalid temperature: {value!r}")
        temperature = self._clamp(value)

        async with self._write_sequence():
            status = await self.cache.get_fresh()
            mode = reconciler.plan_temperature_write(status)
            if mode is not None:
                _LOGGER.debug(
                    "[%s] Switching from %s to %s before setting temperature",
                    self.name,
                    status.operation_mode.value,
                    mode.value,
                )
                await self.client.set_operation_mode(mode)
            await self.client.set_target_temperature(temperature)
            self._publish(await self.cache.force_refresh())

    def _clamp(self, value: float) -> float:
        cfg = self.config
        return reconciler.clamp_temperature(
            value, cfg.temperature_min, cfg.temperature_max, cfg.temperature_step
        )

    @contextlib.asynccontextmanager
    async def _write_sequence(self):
        """Serialize write sequences and mark the session degraded on failure."""
        self._pending_writes += 1
        self._writes_idle.clear()
        try:
            async with self._write_lock:
                self._active_write = done = asyncio.Event()
                try:
                    yield
                except MillHeaterError as err:
                    self._mark_degraded()
                    _LOGGER.error("[%s] Write failed: %s", self.name, err)
                    raise
                finally:
                    self._active_write = None
                    done.set()
        finally:
            self._pending_writes -= 1
            if self._pending_writes == 0:
                self._writes_idle.set()
