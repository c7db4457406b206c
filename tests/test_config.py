from __future__ import annotations

import pytest

from millheater.config import AccessoryInfo, DeviceConfig, PlatformConfig
from millheater.exceptions import MillHeaterValidationError


def test_device_defaults() -> None:
    device = DeviceConfig(name="Office", host="10.0.0.3")
    assert device.poll_seconds == 10
    assert device.cache_ttl == 2.0
    assert device.temperature_min == 5
    assert device.temperature_max == 30
    assert device.temperature_step == 0.5
    assert device.temperature_unit == "C"
    assert device.protocol == "http"
    assert device.allow_insecure_https is True
    assert device.timeout == 5.0
    assert device.info == AccessoryInfo(manufacturer="Mill", model="Gen 3/4 Heater")


def test_platform_defaults_apply_to_devices() -> None:
    config = PlatformConfig.from_dict(
        {
            "name": "Mill",
            "pollSeconds": 30,
            "cacheTtlMs": 500,
            "temperatureMin": 7,
            "temperatureMax": 28,
            "temperatureStep": 1,
            "temperatureUnit": "F",
            "apiKey": "platform-key",
            "allowInsecureHttps": False,
            "accessoryInfo": {"manufacturer": "Mill AS"},
            "devices": [
                {"name": "Office", "host": "10.0.0.3"},
                {
                    "name": "Bedroom",
                    "host": "10.0.0.4",
                    "pollSeconds": 5,
                    "apiKey": "own-key",
                    "info": {"serialNumber": "SN-1"},
                },
            ],
        }
    )

    office, bedroom = config.devices
    assert config.name == "Mill"
    assert office.poll_seconds == 30
    assert office.cache_ttl_ms == 500
    assert office.temperature_min == 7
    assert office.temperature_max == 28
    assert office.temperature_step == 1
    assert office.temperature_unit == "F"
    assert office.api_key == "platform-key"
    assert office.allow_insecure_https is False
    assert office.info.manufacturer == "Mill AS"
    assert bedroom.poll_seconds == 5
    assert bedroom.api_key == "own-key"
    assert bedroom.info.serial_number == "SN-1"
    assert bedroom.info.manufacturer == "Mill AS"


def test_legacy_accessory_entries() -> None:
    config = PlatformConfig.from_dict(
        {
            "accessories": [
                {
                    "name": "Hall",
                    "host": "10.0.0.5",
                    "pollIntervalSeconds": 15,
                    "minTemperature": 10,
                    "maxTemperature": 25,
                    "protocol": "auto",
                    "firmwareRevision": "1.2",
                }
            ]
        }
    )

    (hall,) = config.devices
    assert hall.poll_seconds == 15
    assert hall.temperature_min == 10
    assert hall.temperature_max == 25
    assert hall.protocol == "auto"
    assert hall.info.firmware_revision == "1.2"


@pytest.mark.parametrize(
    ("unit", "expected"),
    [("celsius", "C"), ("Fahrenheit", "F"), ("c", "C"), ("f", "F"), ("F", "F")],
)
def test_temperature_unit_names_are_normalised(unit: str, expected: str) -> None:
    config = PlatformConfig.from_dict(
        {
            "pollSeconds": 10,
            "cacheTtlMs": 2000,
            "temperatureUnit": unit,
            "devices": [{"name": "Office", "host": "10.0.0.2"}],
        }
    )
    assert config.devices[0].temperature_unit == expected


def test_empty_platform() -> None:
    assert PlatformConfig.from_dict({}).devices == ()


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"host": ""},
        {"temperature_min": 30, "temperature_max": 5},
        {"temperature_step": 0},
        {"temperature_max": float("inf")},
        {"poll_seconds": 0},
        {"cache_ttl_ms": -1},
        {"temperature_unit": "K"},
        {"protocol": "ftp"},
    ],
)
def test_invalid_device_config(overrides: dict) -> None:
    values = {"name": "Office", "host": "10.0.0.3", **overrides}
    with pytest.raises(MillHeaterValidationError):
        DeviceConfig(**values)


def test_wrongly_typed_value_raises_validation_error() -> None:
    with pytest.raises(MillHeaterValidationError):
        DeviceConfig.from_dict({"name": "Office", "host": "10.0.0.3", "temperatureMin": "5"})


def test_accessory_info_merge_keeps_configured_values() -> None:
    info = AccessoryInfo(serial_number="configured")
    merged = info.merged(firmware_revision="2.0", serial_number="AA:BB")
    assert merged.firmware_revision == "2.0"
    assert merged.serial_number == "configured"
    assert info.merged(firmware_revision=None) is info
