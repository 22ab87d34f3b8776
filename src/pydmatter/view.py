"""Display projection of the device collection.

Everything here is a pure function of the device list; nothing mutates
the collection it is given.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from pydmatter.models.device import Device


class BatteryBand(enum.StrEnum):
    GOOD = "good"
    LOW = "low"
    CRITICAL = "critical"
    UNKNOWN = "unknown"


def battery_band(percentage: int | None) -> BatteryBand:
    if percentage is None:
        return BatteryBand.UNKNOWN
    if percentage > 50:
        return BatteryBand.GOOD
    if percentage > 20:
        return BatteryBand.LOW
    return BatteryBand.CRITICAL


def matches(device: Device, term: str) -> bool:
    """Case-insensitive substring match on name, vendor serial and Geotab serial."""
    needle = term.lower()
    if not needle:
        return True
    haystacks = (device.geotab_name, device.serial_number, device.geotab_serial)
    return any(needle in value.lower() for value in haystacks if value)


def filter_devices(devices: Sequence[Device], term: str) -> list[Device]:
    """Devices matching *term*, in their original order.

    An empty (or blank) term keeps every device.
    """
    return [device for device in devices if matches(device, term)]


@dataclass(frozen=True, slots=True)
class DeviceView:
    """One display row."""

    serial_number: str
    title: str
    geotab_serial: str
    battery: str
    battery_band: BatteryBand
    device_type: str
    has_parameters: bool


def to_view(device: Device) -> DeviceView:
    return DeviceView(
        serial_number=device.serial_number,
        title=device.geotab_name or "Unknown Device",
        geotab_serial=device.geotab_serial or "N/A",
        battery=f"{device.battery_percentage}%" if device.battery_percentage is not None else "N/A",
        battery_band=battery_band(device.battery_percentage),
        device_type=str(device.device_type) if device.device_type is not None else "Unknown",
        has_parameters=device.has_parameters,
    )


def project(devices: Sequence[Device], term: str = "") -> list[DeviceView]:
    """Filter by *term* and map to display rows."""
    return [to_view(device) for device in filter_devices(devices, term)]


def count_summary(shown: int, total: int) -> str:
    return f"{shown} of {total} devices"
