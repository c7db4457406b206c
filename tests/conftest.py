"""Shared fixtures for the Mill heater tests."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import Any, Callable

import pytest

from millheater.config import DeviceConfig
from millheater.models import ControlStatus, OperationMode


def make_status(**overrides: Any) -> ControlStatus:
    """Return a control status with sensible defaults."""
    values: dict[str, Any] = {
        "ambient_temperature": 19.5,
        "current_power": 0.0,
        "control_signal": 0.0,
        "set_temperature": 21.0,
        "switched_on": True,
        "connected_to_cloud": False,
        "operation_mode": OperationMode.CONTROL_INDIVIDUALLY,
        "status": "ok",
    }
    values.update(overrides)
    return ControlStatus(**values)


def control_status_payload(**overrides: Any) -> dict[str, Any]:
    """Return a /control-status JSON body."""
    payload: dict[str, Any] = {
        "ambient_temperature": 19.5,
        "current_power": 450,
        "control_signal": 80,
        "set_temperature": 21,
        "switched_on": True,
        "connected_to_cloud": True,
        "operation_mode": "Control individually",
        "status": "ok",
    }
    payload.update(overrides)
    return payload


class MockResponse:
    def __init__(
        self,
        status: int,
        json_data: Any,
        *,
        json_exc: Exception | None = None,
    ) -> None:
        self.status = status
        self._json = json_data
        self._json_exc = json_exc

    async def __aenter__(self) -> MockResponse:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    async def json(self, content_type: str | None = None) -> Any:
        if self._json_exc is not None:
            raise self._json_exc
        return self._json


class FakeWebSession:
    """Record requests and answer them from a queue of responses."""

    def __init__(self, *responses: MockResponse | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> MockResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


class FakeSink:
    """Characteristic sink recording everything pushed by a session."""

    def __init__(self) -> None:
        self.values: dict[Any, Any] = {}
        self.updates: list[tuple[Any, Any]] = []
        self.properties: dict[Any, dict[str, Any]] = {}
        self.info = None

    def update_characteristic(self, characteristic: Any, value: Any) -> None:
        self.values[characteristic] = value
        self.updates.append((characteristic, value))

    def set_characteristic_properties(self, characteristic: Any, **props: Any) -> None:
        self.properties[characteristic] = props

    def set_accessory_information(self, info: Any) -> None:
        self.info = info


class FakeClient:
    """Heater client double recording the order of device calls."""

    def __init__(self, status: ControlStatus | None = None) -> None:
        self.status = status or make_status()
        self.calls: list[tuple[str, Any]] = []
        self.read_error: Exception | None = None
        self.write_error: Exception | None = None
        self.read_gate: asyncio.Event | None = None
        self.write_gate: asyncio.Event | None = None
        self.on_write: Callable[[str, Any], None] | None = None

    async def read_control_status(self) -> ControlStatus:
        self.calls.append(("read", None))
        if self.read_gate is not None:
            await self.read_gate.wait()
        if self.read_error is not None:
            raise self.read_error
        return self.status

    async def read_summary(self) -> Any:
        raise NotImplementedError

    async def set_operation_mode(self, mode: OperationMode) -> None:
        await self._write("mode", mode)
        self.status = replace(
            self.status, operation_mode=mode, switched_on=mode is not OperationMode.OFF
        )

    async def set_target_temperature(self, value: float) -> None:
        await self._write("temperature", value)
        self.status = replace(self.status, set_temperature=value)

    async def _write(self, kind: str, value: Any) -> None:
        self.calls.append((kind, value))
        if self.on_write is not None:
            self.on_write(kind, value)
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.write_error is not None:
            raise self.write_error

    @property
    def writes(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] != "read"]


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def device_config() -> DeviceConfig:
    return DeviceConfig(
        name="Living room",
        host="192.168.1.50",
        poll_seconds=10,
        cache_ttl_ms=2000,
        temperature_min=5,
        temperature_max=30,
        temperature_step=0.5,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()
