"""Platform creating one device session per configured heater."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field, replace
import logging
from typing import Any, Protocol
import uuid

import aiohttp

from .config import DeviceConfig, PlatformConfig
from .const import UUID_PREFIX
from .exceptions import MillHeaterError
from .millheater import MillHeater
from .session import CharacteristicSink, DeviceSession

_LOGGER = logging.getLogger(__name__)


@dataclass
class Accessory:
    """Accessory identity owned and persisted by the host."""

    uuid: str
    display_name: str
    context: dict[str, Any] = field(default_factory=dict)


class AccessoryHost(Protocol):
    """Host runtime managing accessory registration."""

    def register_accessories(self, accessories: list[Accessory]) -> None:
        """Register newly created accessories."""

    def unregister_accessories(self, accessories: list[Accessory]) -> None:
        """Remove accessories that are no longer configured."""

    def sink_for(self, accessory: Accessory) -> CharacteristicSink:
        """Return the characteristic sink of an accessory."""


def accessory_uuid(device: DeviceConfig) -> str:
    """Return a stable accessory id for a heater, based on host and name."""
    return str(uuid.uuid5(uuid.NAMESPACE_URL, f"{UUID_PREFIX}:{device.host}:{device.name}"))


class MillHeaterPlatform:
    """Composition root reconciling configured heaters with cached accessories."""

    def __init__(
        self,
        config: PlatformConfig,
        host: AccessoryHost,
        websession: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the platform.

        Args:
            config: Platform configuration
            host: Host runtime owning accessory identities
            websession: Optional aiohttp ClientSession shared by all heaters.
                If not provided, one will be created on setup.
        """
        self.config = config
        self._host = host
        self._websession = websession
        self._own_session = websession is None
        self.accessories: dict[str, Accessory] = {}
        self.sessions: dict[str, DeviceSession] = {}

    def configure_accessory(self, accessory: Accessory) -> None:
        """Take an accessory restored from the host cache."""
        _LOGGER.info("Loading accessory from cache: %s", accessory.display_name)
        self.accessories[accessory.uuid] = accessory

    async def async_setup(self) -> None:
        """Create sessions for configured heaters and drop stale accessories."""
        if self._websession is None:
            self._websession = aiohttp.ClientSession()
            self._own_session = True

        new_accessories = []
        for device in self.config.devices:
            accessory_id = accessory_uuid(device)
            if accessory_id in self.sessions:
                _LOGGER.warning("Duplicate heater %s at %s ignored", device.name, device.host)
                continue

            accessory = self.accessories.get(accessory_id)
            if accessory is not None:
                _LOGGER.info("Restoring existing accessory from cache: %s", accessory.display_name)
            else:
                _LOGGER.info("Adding new accessory: %s", device.name)
                accessory = Accessory(uuid=accessory_id, display_name=device.name)
                self.accessories[accessory_id] = accessory
                new_accessories.append(accessory)
            accessory.context["device"] = {"name": device.name, "host": device.host}

            client = MillHeater(
                device.host,
                api_key=device.api_key,
                protocol=device.protocol,
                allow_insecure_https=device.allow_insecure_https,
                timeout=device.timeout,
                websession=self._websession,
            )
            device = await self._backfill_metadata(device, client)
            session = DeviceSession(device, client, self._host.sink_for(accessory))
            self.sessions[accessory_id] = session
            await session.start()

        if new_accessories:
            self._host.register_accessories(new_accessories)

        stale = [
            accessory
            for accessory_id, accessory in self.accessories.items()
            if accessory_id not in self.sessions
        ]
        if stale:
            _LOGGER.info("Removing %s accessory(ies) not present in config", len(stale))
            self._host.unregister_accessories(stale)
            for accessory in stale:
                del self.accessories[accessory.uuid]

    async def _backfill_metadata(self, device: DeviceConfig, client: MillHeater) -> DeviceConfig:
        """Fill firmware revision and serial number from the heater's summary."""
        try:
            summary = await client.read_summary()
        except MillHeaterError as err:
            _LOGGER.warning("[%s] Could not read device summary: %s", device.name, err)
            return device
        info = device.info.merged(
            firmware_revision=summary.version,
            serial_number=summary.mac_address,
        )
        if info is device.info:
            return device
        return replace(device, info=info)

    async def async_shutdown(self) -> None:
        """Stop all sessions and close the owned web session."""
        await asyncio.gather(*(session.stop() for session in self.sessions.values()))
        self.sessions.clear()
        if self._own_session and self._websession is not None:
            await self._websession.close()
            self._websession = None
