"""Data models for Digital Matter and Geotab payloads."""

from pydmatter.models._base import DmBaseModel
from pydmatter.models.command import AsyncMessage, CommandAck
from pydmatter.models.device import (
    DEFAULT_PROBE_ORDER,
    BatteryStatus,
    Device,
    DeviceFamily,
    DeviceType,
    ParameterValue,
    SystemParameters,
    VendorDevice,
)
from pydmatter.models.parameters import ParamSection, RequestModel, SetParametersRequest
from pydmatter.models.registry import RegistryDevice

__all__ = [
    "AsyncMessage",
    "BatteryStatus",
    "CommandAck",
    "DEFAULT_PROBE_ORDER",
    "Device",
    "DeviceFamily",
    "DeviceType",
    "DmBaseModel",
    "ParamSection",
    "ParameterValue",
    "RegistryDevice",
    "RequestModel",
    "SetParametersRequest",
    "SystemParameters",
    "VendorDevice",
]
