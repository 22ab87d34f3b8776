"""Tests for Pydantic model parsing and Device stage transitions."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pydmatter.models.command import AsyncMessage, CommandAck
from pydmatter.models.device import (
    BatteryStatus,
    Device,
    DeviceFamily,
    DeviceType,
    VendorDevice,
)
from pydmatter.models.parameters import ParamSection, SetParametersRequest
from pydmatter.models.registry import RegistryDevice

# ------------------------------------------------------------------
# Vendor payloads
# ------------------------------------------------------------------


class TestVendorDevice:
    def test_pascal_case_keys(self) -> None:
        device = VendorDevice.model_validate({"SerialNumber": "YB-1", "ProductId": "87", "Client": "acme"})
        assert device.serial_number == "YB-1"
        assert device.product_id == 87
        assert device.client == "acme"
        assert device.raw["ProductId"] == "87"

    def test_empty_client_is_none(self) -> None:
        device = VendorDevice.model_validate({"SerialNumber": "YB-1", "ProductId": 87, "Client": ""})
        assert device.client is None

    def test_missing_serial_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VendorDevice.model_validate({"SerialNumber": " ", "ProductId": 87})

    def test_non_numeric_product_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VendorDevice.model_validate({"SerialNumber": "YB-1", "ProductId": "abc"})


class TestBatteryStatus:
    def test_percentage_clamped(self) -> None:
        assert BatteryStatus.model_validate({"BatteryPercentage": 140}).battery_percentage == 100
        assert BatteryStatus.model_validate({"BatteryPercentage": -3}).battery_percentage == 0

    def test_counters_kept_in_raw(self) -> None:
        status = BatteryStatus.model_validate({"BatteryPercentage": "42.7", "UploadCounter": 9})
        assert status.battery_percentage == 42
        assert status.raw["UploadCounter"] == 9

    def test_null_sentinel(self) -> None:
        assert BatteryStatus.model_validate({"BatteryPercentage": "null"}).battery_percentage is None


class TestRegistryDevice:
    def test_camel_case_keys(self) -> None:
        record = RegistryDevice.model_validate({"id": "b12", "name": "Truck 7", "serialNumber": "G9ABC", "vin": "X"})
        assert record.id == "b12"
        assert record.name == "Truck 7"
        assert record.serial_number == "G9ABC"
        assert record.raw["vin"] == "X"

    def test_blank_serial_is_none(self) -> None:
        record = RegistryDevice.model_validate({"id": "b12", "serialNumber": ""})
        assert record.serial_number is None
        assert record.name == ""


# ------------------------------------------------------------------
# DeviceType
# ------------------------------------------------------------------


def test_device_type_families() -> None:
    assert DeviceType.YABBY_3_4G.family is DeviceFamily.YABBY
    assert DeviceType.YABBY_EDGE.family is DeviceFamily.YABBY_EDGE
    assert DeviceType.OYSTER_2.family is DeviceFamily.OYSTER
    assert DeviceType("Oyster34G") is DeviceType.OYSTER_3_4G


# ------------------------------------------------------------------
# Device transitions
# ------------------------------------------------------------------


def _device() -> Device:
    return Device(serial_number="YB-1", product_id=87)


class TestDevice:
    def test_from_vendor(self) -> None:
        vendor = VendorDevice.model_validate({"SerialNumber": "YB-1", "ProductId": 87, "Client": "acme"})
        device = Device.from_vendor(vendor)
        assert device.serial_number == "YB-1"
        assert device.client == "acme"
        assert device.geotab_serial is None
        assert not device.has_parameters

    def test_transitions_return_new_values(self) -> None:
        base = _device()
        resolved = base.with_geotab_serial("G9ABC")
        matched = resolved.with_registry_match(name="Truck 7", registry_id="b12")

        assert base.geotab_serial is None
        assert resolved.geotab_id is None
        assert matched.geotab_name == "Truck 7"
        assert matched.is_matched

    def test_registry_match_requires_serial(self) -> None:
        with pytest.raises(ValueError):
            _device().with_registry_match(name="Truck 7", registry_id="b12")

    def test_battery_range_enforced(self) -> None:
        assert _device().with_battery(55).battery_percentage == 55
        with pytest.raises(ValidationError):
            _device().with_battery(101)

    def test_type_and_parameters_set_together(self) -> None:
        with pytest.raises(ValidationError):
            Device(serial_number="YB-1", product_id=87, device_type=DeviceType.YABBY_3_4G)

        device = _device().with_parameters(DeviceType.YABBY_3_4G, {"2000": {"bTrackingMode": 0}})
        assert device.has_parameters
        assert device.device_type is DeviceType.YABBY_3_4G

    def test_frozen(self) -> None:
        with pytest.raises(ValidationError):
            _device().serial_number = "other"  # type: ignore[misc]

    def test_updated_parameters_only_touch_known_sections(self) -> None:
        device = _device().with_parameters(
            DeviceType.YABBY_3_4G,
            {"2000": {"bTrackingMode": 0, "fGpsPowerMode": 1}},
        )
        updated = device.with_updated_parameters({"2000": {"bTrackingMode": "2"}, "9999": {"x": "1"}})

        assert updated.system_parameters == {"2000": {"bTrackingMode": "2", "fGpsPowerMode": 1}}
        assert device.system_parameters == {"2000": {"bTrackingMode": 0, "fGpsPowerMode": 1}}

    def test_updated_parameters_without_parameters(self) -> None:
        with pytest.raises(ValueError):
            _device().with_updated_parameters({"2000": {"bTrackingMode": "1"}})


# ------------------------------------------------------------------
# Write-side models
# ------------------------------------------------------------------


def test_set_parameters_request_payload() -> None:
    request = SetParametersRequest(
        devices=["YB-1"],
        param_sections=[ParamSection(id=2000, params={"bTrackingMode": "1"})],
    )
    assert request.to_payload() == {
        "Devices": ["YB-1"],
        "ParamSections": [{"Id": "2000", "Params": {"bTrackingMode": "1"}}],
    }


def test_empty_param_section_rejected() -> None:
    with pytest.raises(ValidationError):
        ParamSection(id="2000", params={})


def test_async_message_payload() -> None:
    message = AsyncMessage(
        message_type=3,
        can_address=0xFFFFFFFF,
        data=[3],
        expiry=datetime(2026, 3, 1, 13, 0, tzinfo=UTC),
    )
    assert message.to_payload() == {
        "MessageType": 3,
        "CANAddress": 4294967295,
        "Data": [3],
        "ExpiryDateUTC": "2026-03-01T13:00:00.000Z",
    }


class TestCommandAck:
    def test_empty_body_is_ok(self) -> None:
        assert CommandAck.model_validate({}).ok

    def test_error_body(self) -> None:
        ack = CommandAck.model_validate({"error": "Device not found"})
        assert not ack.ok
        assert ack.error == "Device not found"

    def test_non_dict_body(self) -> None:
        ack = CommandAck.model_validate(True)
        assert ack.ok
        assert ack.raw == {"value": True}
