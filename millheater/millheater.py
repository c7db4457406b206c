"""Main MillHeater class for talking to a heater's local REST API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .const import (
    AUTH_HEADER,
    DEFAULT_TIMEOUT,
    ENDPOINT_CONTROL_STATUS,
    ENDPOINT_OPERATION_MODE,
    ENDPOINT_SET_TEMPERATURE,
    ENDPOINT_STATUS,
    PROTOCOL_AUTO,
    PROTOCOL_HTTP,
    PROTOCOL_HTTPS,
    STATUS_OK,
    TEMPERATURE_TYPE_NORMAL,
)
from .exceptions import (
    MillHeaterAuthenticationError,
    MillHeaterConnectionError,
    MillHeaterProtocolError,
)
from .models import ControlStatus, DeviceSummary, OperationMode

_LOGGER = logging.getLogger(__name__)


class MillHeater:
    """Stateless client for a single Mill heater."""

    def __init__(
        self,
        host: str,
        api_key: str | None = None,
        protocol: str = PROTOCOL_HTTP,
        allow_insecure_https: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        websession: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the heater client.

        Args:
            host: Hostname or IP address of the heater, optionally with a scheme
            api_key: Optional API key sent in the Authentication header
            protocol: "http", "https" or "auto" (https when an API key is set)
            allow_insecure_https: Accept self-signed certificates over https
            timeout: Request timeout in seconds
            websession: Optional aiohttp ClientSession. If not provided, one will be created.
        """
        self._api_key = api_key.strip() if api_key else None
        if not host.startswith("http"):
            if protocol == PROTOCOL_AUTO:
                protocol = PROTOCOL_HTTPS if self._api_key else PROTOCOL_HTTP
            host = f"{protocol}://{host}"
        self.base_url = host.rstrip("/")
        self._ssl = not (self.base_url.startswith("https") and allow_insecure_https)
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._websession = websession
        self._own_session = websession is None

    async def close_connection(self) -> None:
        """Close the connection and clean up resources."""
        if self._own_session and self._websession:
            await self._websession.close()
            self._websession = None

    async def _ensure_session(self) -> None:
        """Ensure a websession exists."""
        if self._websession is None:
            self._websession = aiohttp.ClientSession()
            self._own_session = True

    async def __aenter__(self) -> MillHeater:
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close_connection()

    async def read_summary(self) -> DeviceSummary:
        """Read name, firmware version and MAC address of the heater."""
        data = await self._request("GET", ENDPOINT_STATUS)
        _LOGGER.debug("Status data from %s: %s", self.base_url, data)
        return DeviceSummary.from_dict(data)

    async def read_control_status(self) -> ControlStatus:
        """Read the current control status of the heater."""
        data = await self._request("GET", ENDPOINT_CONTROL_STATUS)
        _LOGGER.debug("Control status from %s: %s", self.base_url, data)
        control_status = ControlStatus.from_dict(data)
        if (
            control_status.operation_mode is OperationMode.INVALID
            and data.get("operation_mode") != OperationMode.INVALID.value
        ):
            _LOGGER.warning(
                "Unrecognized operation mode %r from %s, treating it as Invalid",
                data.get("operation_mode"),
                self.base_url,
            )
        return control_status

    async def set_operation_mode(self, mode: OperationMode) -> None:
        """Set the operation mode of the heater."""
        _LOGGER.debug("Setting operation mode of %s to %s", self.base_url, mode.value)
        await self._request("POST", ENDPOINT_OPERATION_MODE, {"mode": mode.value})

    async def set_target_temperature(self, value: float) -> None:
        """Set the normal target temperature of the heater."""
        _LOGGER.debug("Setting target temperature of %s to %s", self.base_url, value)
        await self._request(
            "POST",
            ENDPOINT_SET_TEMPERATURE,
            {"type": TEMPERATURE_TYPE_NORMAL, "value": value},
        )

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {AUTH_HEADER: self._api_key}
        return {}

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Send a request and return the parsed JSON body."""
        await self._ensure_session()
        assert self._websession is not None
        url = f"{self.base_url}{path}"
        try:
            async with self._websession.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self._timeout,
                ssl=self._ssl,
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None
                if not isinstance(data, dict):
                    data = {}
                if response.status in (401, 403):
                    raise MillHeaterAuthenticationError(
                        f"{method} {path} failed: authentication rejected (HTTP {response.status})"
                    )
                if not 200 <= response.status < 300:
                    raise MillHeaterProtocolError(
                        f"{method} {path} failed: HTTP {response.status} - {data}"
                    )
        except MillHeaterProtocolError:
            raise
        except asyncio.TimeoutError as err:
            raise MillHeaterConnectionError(f"{method} {path} timed out") from err
        except aiohttp.ClientError as err:
            raise MillHeaterConnectionError(f"Failed to connect to heater: {err}") from err

        status = data.get("status")
        if status and status != STATUS_OK:
            raise MillHeaterProtocolError(f"{method} {path} status != ok: {status}")
        return data
