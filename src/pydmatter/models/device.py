"""Device models.

:class:`VendorDevice` is the raw entry returned by the device list call.
:class:`Device` is the enriched, immutable record the pipeline builds;
every stage produces a new value through one of the ``with_*``
transitions instead of mutating fields in place.
"""

from __future__ import annotations

import copy
import enum
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pydmatter._normalize import clamp_percentage, safe_int, safe_str
from pydmatter.models._base import DmBaseModel

ParameterValue = str | int | float
SystemParameters = dict[str, dict[str, ParameterValue]]


class DeviceFamily(enum.StrEnum):
    """Hardware families that share parameter semantics."""

    YABBY = "yabby"
    YABBY_EDGE = "yabby_edge"
    OYSTER = "oyster"


class DeviceType(enum.StrEnum):
    """Digital Matter device models with a parameter endpoint.

    The value is the path segment the OEM server uses for the model's
    ``/v1/<type>/Get`` parameter endpoint.
    """

    YABBY_3_4G = "Yabby34G"
    YABBY_EDGE = "YabbyEdge"
    OYSTER_2 = "Oyster2"
    OYSTER_3_4G = "Oyster34G"

    @property
    def family(self) -> DeviceFamily:
        if self is DeviceType.YABBY_EDGE:
            return DeviceFamily.YABBY_EDGE
        if self in (DeviceType.OYSTER_2, DeviceType.OYSTER_3_4G):
            return DeviceFamily.OYSTER
        return DeviceFamily.YABBY


#: Order in which candidate types are probed when the product id is unknown.
DEFAULT_PROBE_ORDER: tuple[DeviceType, ...] = (
    DeviceType.YABBY_3_4G,
    DeviceType.YABBY_EDGE,
    DeviceType.OYSTER_2,
    DeviceType.OYSTER_3_4G,
)


class VendorDevice(DmBaseModel):
    """A device entry from ``TrackingDevice/GetDeviceList``."""

    serial_number: str
    """Vendor serial (unique)."""
    product_id: int
    """Vendor device-model code."""
    client: str | None = None
    """Tenant label, present only in client-scoped deployments."""

    @field_validator("serial_number", mode="before")
    @classmethod
    def _coerce_serial(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("SerialNumber is required")
        return text

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_product(cls, value: Any) -> int:
        parsed = safe_int(value)
        if parsed is None:
            raise ValueError("ProductId must be numeric")
        return parsed


class BatteryStatus(DmBaseModel):
    """Response of ``TrackingDevice/GetBatteryPercentageAndDeviceCounters``.

    Only the percentage is interpreted; the device counters stay in ``raw``.
    """

    battery_percentage: int | None = None

    @field_validator("battery_percentage", mode="before")
    @classmethod
    def _coerce_percentage(cls, value: Any) -> int | None:
        return clamp_percentage(value)


class Device(BaseModel):
    """An enriched tracking device.

    Fields fill in as the enrichment pipeline advances.  The model is
    frozen; use the ``with_*`` methods to derive the next value.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    serial_number: str
    product_id: int
    client: str | None = None

    geotab_serial: str | None = None
    """Serial of the matching Geotab device, once resolved."""
    geotab_name: str | None = None
    geotab_id: str | None = None

    battery_percentage: int | None = Field(default=None, ge=0, le=100)

    device_type: DeviceType | None = None
    system_parameters: SystemParameters | None = None
    """Section id -> parameter key -> raw value."""

    @model_validator(mode="after")
    def _check_invariants(self) -> Device:
        if (self.device_type is None) != (self.system_parameters is None):
            raise ValueError("device_type and system_parameters must be set together")
        if (self.geotab_name is None) != (self.geotab_id is None):
            raise ValueError("geotab_name and geotab_id must be set together")
        if self.geotab_id is not None and self.geotab_serial is None:
            raise ValueError("registry identity requires a resolved geotab_serial")
        return self

    @classmethod
    def from_vendor(cls, vendor: VendorDevice) -> Device:
        return cls(
            serial_number=vendor.serial_number,
            product_id=vendor.product_id,
            client=vendor.client,
        )

    @property
    def has_parameters(self) -> bool:
        return self.system_parameters is not None

    @property
    def is_matched(self) -> bool:
        """Whether a Geotab registry record was matched."""
        return self.geotab_id is not None

    # ------------------------------------------------------------------
    # Stage transitions
    # ------------------------------------------------------------------

    def with_geotab_serial(self, geotab_serial: str) -> Device:
        return self.model_copy(update={"geotab_serial": geotab_serial})

    def with_registry_match(self, *, name: str, registry_id: str) -> Device:
        if self.geotab_serial is None:
            raise ValueError(f"Device {self.serial_number} has no geotab serial to match")
        return self.model_copy(update={"geotab_name": name, "geotab_id": registry_id})

    def with_battery(self, percentage: int) -> Device:
        return self.model_validate({**self.model_dump(), "battery_percentage": percentage})

    def with_parameters(self, device_type: DeviceType, parameters: Mapping[str, Mapping[str, ParameterValue]]) -> Device:
        return self.model_copy(
            update={
                "device_type": device_type,
                "system_parameters": {section: dict(values) for section, values in parameters.items()},
            }
        )

    def with_updated_parameters(self, updates: Mapping[str, Mapping[str, ParameterValue]]) -> Device:
        """Overlay saved values onto the known parameter set.

        Only sections the device already reports are touched; keys inside
        those sections are overwritten or added.
        """
        if self.system_parameters is None:
            raise ValueError(f"Device {self.serial_number} has no parameters to update")
        merged = copy.deepcopy(self.system_parameters)
        for section_id, values in updates.items():
            section = merged.get(section_id)
            if section is None:
                continue
            section.update(values)
        return self.model_copy(update={"system_parameters": merged})
