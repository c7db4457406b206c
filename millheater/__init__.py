"""Python library for Mill heaters on their local REST API."""

from .cache import StatusCache
from .config import AccessoryInfo, DeviceConfig, PlatformConfig
from .exceptions import (
    MillHeaterAuthenticationError,
    MillHeaterConnectionError,
    MillHeaterError,
    MillHeaterProtocolError,
    MillHeaterValidationError,
)
from .millheater import MillHeater
from .models import (
    ActiveState,
    Characteristic,
    ControlStatus,
    DeviceSummary,
    HeatingCoolingState,
    OperationMode,
    PresentationState,
    SessionState,
)
from .platform import Accessory, AccessoryHost, MillHeaterPlatform
from .session import CharacteristicSink, DeviceSession

__all__ = [
    "Accessory",
    "AccessoryHost",
    "AccessoryInfo",
    "ActiveState",
    "Characteristic",
    "CharacteristicSink",
    "ControlStatus",
    "DeviceConfig",
    "DeviceSession",
    "DeviceSummary",
    "HeatingCoolingState",
    "MillHeater",
    "MillHeaterAuthenticationError",
    "MillHeaterConnectionError",
    "MillHeaterError",
    "MillHeaterPlatform",
    "MillHeaterProtocolError",
    "MillHeaterValidationError",
    "OperationMode",
    "PlatformConfig",
    "PresentationState",
    "SessionState",
    "StatusCache",
]
