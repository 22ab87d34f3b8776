"""Parameter catalog.

Maps ``(device type, section id, parameter key)`` to the label, help text
and input kind shown on a device's parameter view.  Sections and keys
that are not catalogued are hidden from the view; the device still keeps
them in its ``system_parameters``.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field

from pydmatter._constants import (
    SECTION_ADVANCED_TRACKING,
    SECTION_ALT_BASIC_TRACKING,
    SECTION_BASIC_TRACKING,
)
from pydmatter.models.device import DeviceFamily, DeviceType, SystemParameters
from pydmatter.options import ParameterOption, is_enumerable, options_for, value_text


class InputKind(enum.StrEnum):
    SELECT = "select"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    key: str
    label: str
    help: str
    input_kind: InputKind


@dataclass(frozen=True, slots=True)
class SectionSpec:
    section_id: str
    name: str
    description: str
    params: Mapping[str, tuple[str, str]] = field(default_factory=dict)
    """Parameter key -> (label, help)."""


_BASIC_TRACKING_PARAMS: dict[str, tuple[str, str]] = {
    "bPeriodicUploadHrMin": (
        "Heartbeat Upload Period (min)",
        "Period of inactivity before a heartbeat upload (minutes)",
    ),
    "bInTripUploadMinSec": ("In Trip Upload Period (s)", "Time between uploads in a trip (seconds)"),
    "bInTripLogMinSec": ("In Trip Logging Period (s)", "Time between GPS fixes in a trip (seconds)"),
    "bGpsTimeoutMinSec": ("GPS Fix Timeout (s)", "Max time to wait for a GPS fix (seconds)"),
    "fGpsPowerMode": ("GPS Mode", "Choose between prioritising GPS performance or power usage"),
}

_SECTIONS: dict[str, SectionSpec] = {
    SECTION_BASIC_TRACKING: SectionSpec(
        section_id=SECTION_BASIC_TRACKING,
        name="Basic Tracking",
        description="These parameters determine the tracking mode and tracking intervals of your device.",
        params={
            **_BASIC_TRACKING_PARAMS,
            "bTrackingMode": ("Tracking Mode", "Mode of location tracking"),
        },
    ),
    SECTION_ALT_BASIC_TRACKING: SectionSpec(
        section_id=SECTION_ALT_BASIC_TRACKING,
        name="Alternative Basic Tracking",
        description="Used when after hours or in configured geofences NOTE: This is an advanced section.",
        params=dict(_BASIC_TRACKING_PARAMS),
    ),
    SECTION_ADVANCED_TRACKING: SectionSpec(
        section_id=SECTION_ADVANCED_TRACKING,
        name="Advanced Tracking",
        description=(
            "Configure upload behavior - whether at trip start, during movement, at trip end, "
            "based on accelerometer activity, and more."
        ),
        params={
            "fUploadOnStart": ("Upload On Trip Start", "Schedule an upload as soon as a trip starts"),
            "fUploadDuring": (
                "Upload During Trip",
                "Schedule uploads while in trip (enables Tracking->In Trip Upload Period)",
            ),
            "fUploadOnEnd": ("Upload On Trip End", "Schedule an upload as soon as a trip ends"),
            "fUploadOnJostle": (
                "Upload On Jostle",
                "Schedule an upload shortly after accelerometer stops firing",
            ),
            "fAvoidGpsWander": ("Suppress GPS Wander", "Filter out small scale GPS movement (noise)"),
            "fCellTowerFallback": (
                "Cell Tower Fallback",
                "Attempt to locate the device using cell towers when a GPS fix attempt fails",
            ),
            "bOnceOffUploadDelayMinutes": (
                "Once-off Upload Delay (min)",
                "Uploads once on trip start after this delay. Set to 0 to disable. Requires fw v1.8+",
            ),
            "bGpsFixMultiplier": (
                "GPS Fix Multiplier",
                "Attempt GPS fix every this heartbeats (0 - 255). 1 will attempt a fix every heartbeat (default).",
            ),
        },
    ),
}

# Per-family (section, key) entries that replace or extend the base catalog.
_FAMILY_OVERRIDES: dict[DeviceFamily, dict[tuple[str, str], tuple[str, str]]] = {
    DeviceFamily.YABBY_EDGE: {
        (SECTION_BASIC_TRACKING, "bTrackingMode"): (
            "Tracking Mode",
            "Mode of location tracking. Edge devices track with jostle trips or periodic updates only.",
        ),
        (SECTION_ADVANCED_TRACKING, "fDisableWifiScan"): (
            "Wi-Fi Scanning",
            "Scan nearby Wi-Fi access points for location when no GPS fix is available",
        ),
    },
}


def describe_section(section_id: str) -> SectionSpec | None:
    return _SECTIONS.get(str(section_id))


def lookup(device_type: DeviceType | None, section_id: str, key: str) -> ParameterSpec | None:
    """Return the catalog entry for a parameter, or ``None`` if uncatalogued."""
    section_id = str(section_id)
    entry: tuple[str, str] | None = None
    if device_type is not None:
        entry = _FAMILY_OVERRIDES.get(device_type.family, {}).get((section_id, key))
    if entry is None:
        section = _SECTIONS.get(section_id)
        if section is None:
            return None
        entry = section.params.get(key)
    if entry is None:
        return None
    label, help_text = entry
    kind = InputKind.SELECT if is_enumerable(key) else InputKind.TEXT
    return ParameterSpec(key=key, label=label, help=help_text, input_kind=kind)


@dataclass(frozen=True, slots=True)
class ParameterField:
    """One editable parameter on a device's parameter view."""

    section_id: str
    spec: ParameterSpec
    value: str
    options: list[ParameterOption] | None = None


@dataclass(frozen=True, slots=True)
class SectionFields:
    section: SectionSpec
    fields: list[ParameterField]


def describe_parameters(
    parameters: SystemParameters,
    device_type: DeviceType | None,
) -> list[SectionFields]:
    """Build the editable view of a device's parameters.

    Follows the device's own section/key order, skipping anything the
    catalog does not describe and sections left with no fields.
    """
    described: list[SectionFields] = []
    for section_id, values in parameters.items():
        section = describe_section(section_id)
        if section is None:
            continue
        fields: list[ParameterField] = []
        for key, value in values.items():
            spec = lookup(device_type, section_id, key)
            if spec is None:
                continue
            fields.append(
                ParameterField(
                    section_id=section_id,
                    spec=spec,
                    value=value_text(value),
                    options=options_for(key, value, device_type) if spec.input_kind is InputKind.SELECT else None,
                )
            )
        if fields:
            described.append(SectionFields(section=section, fields=fields))
    return described
