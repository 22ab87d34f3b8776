"""Parameter endpoints.

Endpoints:
  - /api/get-device-params   (/v1/<DeviceType>/Get)
  - /api/set-device-params   (TrackingDevice/SetDeviceParameters/<ProductId>)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from pydmatter._api._common import device_query, get_optional
from pydmatter._constants import GET_PARAMS_ENDPOINT, SET_PARAMS_ENDPOINT
from pydmatter._normalize import normalize_parameters
from pydmatter._transport import Transport
from pydmatter.models.command import CommandAck
from pydmatter.models.device import DeviceType, SystemParameters
from pydmatter.models.parameters import ParamSection, SetParametersRequest

_logger = logging.getLogger(__name__)


async def fetch_parameters(
    transport: Transport,
    device_type: DeviceType,
    product_id: int,
    serial_number: str,
) -> SystemParameters | None:
    """Read the ``SystemParameters`` of a device as *device_type*.

    The OEM server only answers for the device's real model, so an absent
    or empty payload means "not this type".
    """
    params = {**device_query(product_id, serial_number), "deviceType": device_type.value}
    body = await get_optional(transport, GET_PARAMS_ENDPOINT, params)
    if body is None:
        return None
    parameters = normalize_parameters(body.get("SystemParameters"))
    return parameters or None


async def set_parameters(
    transport: Transport,
    product_id: int,
    serial_number: str,
    sections: Sequence[ParamSection],
) -> CommandAck:
    """Overwrite the listed sections/keys on one device.

    Sections and keys that are not listed keep their current value on
    the device.
    """
    request = SetParametersRequest(devices=[serial_number], param_sections=list(sections))
    body = await transport.request_json(
        "PUT",
        SET_PARAMS_ENDPOINT,
        params={"productId": product_id},
        json_body=request.to_payload(),
    )
    _logger.debug(
        "Parameters written serial=%s sections=%s",
        serial_number,
        [section.id for section in sections],
    )
    return CommandAck.model_validate(body if body is not None else {})
