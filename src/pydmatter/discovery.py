"""Device-type discovery.

The OEM server exposes one parameter endpoint per device model and only
answers for a device's real model.  When the product id does not tell us
the model, candidates are probed in a fixed order and the first one that
returns a non-empty parameter set wins.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Protocol

from pydmatter.exceptions import DmBackendError
from pydmatter.models.device import DeviceType, SystemParameters

_logger = logging.getLogger(__name__)


class ParameterReader(Protocol):
    async def get_parameters(
        self,
        device_type: DeviceType,
        product_id: int,
        serial_number: str,
    ) -> SystemParameters | None: ...


@dataclass(frozen=True, slots=True)
class TypeFound:
    device_type: DeviceType
    parameters: SystemParameters
    attempts: int
    """Number of candidates queried, including the successful one."""


@dataclass(frozen=True, slots=True)
class TypeNotFound:
    tried: tuple[DeviceType, ...]


DiscoveryResult = TypeFound | TypeNotFound


def candidate_types(
    product_id: int,
    product_types: Mapping[int, DeviceType],
    probe_order: Sequence[DeviceType],
) -> tuple[DeviceType, ...]:
    """Types to try for *product_id*: the known one, else the probe order."""
    known = product_types.get(product_id)
    if known is not None:
        return (known,)
    return tuple(probe_order)


async def discover_device_type(
    reader: ParameterReader,
    product_id: int,
    serial_number: str,
    candidates: Sequence[DeviceType],
) -> DiscoveryResult:
    """Query *candidates* in order and stop at the first parameter set.

    A backend error for one candidate is treated like an empty answer:
    wrong-type queries routinely fail on the OEM server.
    """
    tried: list[DeviceType] = []
    for device_type in candidates:
        tried.append(device_type)
        try:
            parameters = await reader.get_parameters(device_type, product_id, serial_number)
        except DmBackendError as exc:
            _logger.debug("Probe %s failed for serial=%s: %s", device_type, serial_number, exc)
            continue
        if parameters:
            return TypeFound(device_type=device_type, parameters=parameters, attempts=len(tried))
    return TypeNotFound(tried=tuple(tried))
