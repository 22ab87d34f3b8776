from __future__ import annotations

from pydmatter.catalog import InputKind, describe_parameters, describe_section, lookup
from pydmatter.models.device import DeviceType


def test_lookup_known_key() -> None:
    spec = lookup(DeviceType.YABBY_3_4G, "2000", "bTrackingMode")
    assert spec is not None
    assert spec.label == "Tracking Mode"
    assert spec.input_kind is InputKind.SELECT


def test_lookup_free_text_key() -> None:
    spec = lookup(DeviceType.OYSTER_2, "2100", "bGpsFixMultiplier")
    assert spec is not None
    assert spec.input_kind is InputKind.TEXT


def test_lookup_uncatalogued() -> None:
    assert lookup(DeviceType.YABBY_3_4G, "2000", "uUnknownKey") is None
    assert lookup(DeviceType.YABBY_3_4G, "3000", "bTrackingMode") is None
    # Tracking mode is only catalogued for the primary tracking section.
    assert lookup(DeviceType.YABBY_3_4G, "2050", "bTrackingMode") is None


def test_family_override() -> None:
    edge = lookup(DeviceType.YABBY_EDGE, "2000", "bTrackingMode")
    base = lookup(DeviceType.YABBY_3_4G, "2000", "bTrackingMode")
    assert edge is not None and base is not None
    assert edge.help != base.help

    assert lookup(DeviceType.YABBY_EDGE, "2100", "fDisableWifiScan") is not None
    assert lookup(DeviceType.YABBY_3_4G, "2100", "fDisableWifiScan") is None


def test_describe_section() -> None:
    section = describe_section("2050")
    assert section is not None
    assert section.name == "Alternative Basic Tracking"
    assert describe_section("1234") is None


def test_describe_parameters_follows_device_order() -> None:
    described = describe_parameters(
        {
            "2100": {"fUploadOnStart": "1", "uHidden": "9"},
            "9999": {"fUploadOnStart": "1"},
            "2000": {"bPeriodicUploadHrMin": 60.0, "bTrackingMode": 2},
            "2050": {"uHidden": "1"},
        },
        DeviceType.YABBY_3_4G,
    )

    assert [section.section.section_id for section in described] == ["2100", "2000"]
    advanced, basic = described
    assert [f.spec.key for f in advanced.fields] == ["fUploadOnStart"]
    assert [f.spec.key for f in basic.fields] == ["bPeriodicUploadHrMin", "bTrackingMode"]

    heartbeat = basic.fields[0]
    assert heartbeat.value == "60"
    assert heartbeat.options is not None
    assert [o.value for o in heartbeat.options if o.selected] == ["60"]


def test_describe_parameters_text_fields_have_no_options() -> None:
    described = describe_parameters({"2100": {"bGpsFixMultiplier": 3}}, DeviceType.OYSTER_3_4G)
    (field,) = described[0].fields
    assert field.value == "3"
    assert field.options is None
