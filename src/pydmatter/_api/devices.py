"""Device read endpoints.

Endpoints:
  - /api/get-device-list     (TrackingDevice/GetDeviceList)
  - /api/get-geotab-serial   (TrackingDevice/GetGeotabSerial)
  - /api/get-battery-data    (TrackingDevice/GetBatteryPercentageAndDeviceCounters)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from pydmatter._api._common import device_query, get_optional, require_dict
from pydmatter._constants import BATTERY_ENDPOINT, DEVICE_LIST_ENDPOINT, GEOTAB_SERIAL_ENDPOINT
from pydmatter._normalize import safe_str
from pydmatter._transport import Transport
from pydmatter.exceptions import DmBackendError
from pydmatter.models.device import BatteryStatus, VendorDevice

_logger = logging.getLogger(__name__)


async def fetch_device_list(
    transport: Transport,
    *,
    client_filter: str | None = None,
) -> list[VendorDevice]:
    """Fetch every device visible to the vendor account.

    Entries that cannot be parsed (missing serial or product id) are
    skipped with a warning rather than failing the whole list.

    Raises
    ------
    DmBackendError
        On transport failure or when the body has no ``Devices`` array.
    """
    body = require_dict(
        DEVICE_LIST_ENDPOINT,
        await transport.request_json("GET", DEVICE_LIST_ENDPOINT, params={"client": client_filter}),
    )
    items = body.get("Devices")
    if not isinstance(items, list):
        raise DmBackendError(
            f"{DEVICE_LIST_ENDPOINT} response has no Devices array",
            endpoint=DEVICE_LIST_ENDPOINT,
        )

    devices: list[VendorDevice] = []
    for item in items:
        try:
            devices.append(VendorDevice.model_validate(item))
        except ValidationError:
            _logger.warning("Skipping malformed device list entry: %r", item)
    return devices


async def fetch_geotab_serial(
    transport: Transport,
    product_id: int,
    serial_number: str,
) -> str | None:
    """Resolve the Geotab serial for a device, or ``None`` if it has none."""
    body = await get_optional(transport, GEOTAB_SERIAL_ENDPOINT, device_query(product_id, serial_number))
    if body is None:
        return None
    return safe_str(body.get("GeotabSerial"))


async def fetch_battery(
    transport: Transport,
    product_id: int,
    serial_number: str,
) -> BatteryStatus | None:
    """Fetch battery percentage and counters, or ``None`` if unsupported."""
    body = await get_optional(transport, BATTERY_ENDPOINT, device_query(product_id, serial_number))
    if body is None:
        return None
    status = BatteryStatus.model_validate(body)
    if status.battery_percentage is None:
        return None
    return status
