"""Dropdown options for enumerable device parameters.

A parameter's edit control is chosen from its key, not its value.  Keys
listed in the registry below get a discrete option list; every other key
is edited as free text (:func:`options_for` returns ``None``).

The registry is an explicit ``key -> generator`` table.  New keys are
added with :func:`register_options` rather than by growing a conditional.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from pydmatter.models.device import DeviceFamily, DeviceType, ParameterValue


@dataclass(frozen=True, slots=True)
class ParameterOption:
    """One entry of a dropdown."""

    value: str
    label: str
    selected: bool = False


Choice = tuple[str, str]
"""``(raw value, label)`` pair."""

OptionGenerator = Callable[[DeviceType | None], Sequence[Choice]]
"""Produces the choices for a key, given the device's resolved type."""


def value_text(value: ParameterValue | None) -> str:
    """Render a raw parameter value the way the device reports it.

    Whole floats lose their fractional part so ``60.0`` selects ``"60"``.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _mark_selected(choices: Iterable[Choice], current: str) -> list[ParameterOption]:
    options = [ParameterOption(value=value, label=label, selected=value == current) for value, label in choices]
    if current and not any(option.selected for option in options):
        # Keep values set outside the generated range selectable.
        options.append(ParameterOption(value=current, label=f"{current} (current)", selected=True))
    return options


# ------------------------------------------------------------------
# Generators
# ------------------------------------------------------------------

_YES_NO: tuple[Choice, ...] = (("0", "No"), ("1", "Yes"))
_INVERTED_YES_NO: tuple[Choice, ...] = (("0", "Yes"), ("1", "No"))


def fixed(choices: Sequence[Choice]) -> OptionGenerator:
    """Generator that ignores the device type."""
    frozen = tuple(choices)

    def _generate(_device_type: DeviceType | None) -> Sequence[Choice]:
        return frozen

    return _generate


def yes_no() -> OptionGenerator:
    return fixed(_YES_NO)


def inverted_yes_no() -> OptionGenerator:
    """Toggle whose ``0`` means "yes" (``fDisable*`` style keys)."""
    return fixed(_INVERTED_YES_NO)


def steps(
    start: int,
    stop: int,
    *,
    step: int = 1,
    scale: int = 1,
    unit: str = "",
    zero_label: str | None = None,
) -> OptionGenerator:
    """Generator for an inclusive integer range.

    Each option's value is ``n * scale`` and its label is ``"<n> <unit>"``.
    ``zero_label`` replaces the label of ``n == 0``.
    """

    def _generate(_device_type: DeviceType | None) -> Sequence[Choice]:
        choices: list[Choice] = []
        for n in range(start, stop + 1, step):
            if n == 0 and zero_label is not None:
                label = zero_label
            else:
                label = f"{n} {unit}".strip()
            choices.append((str(n * scale), label))
        return choices

    return _generate


def by_family(default: Sequence[Choice], overrides: dict[DeviceFamily, Sequence[Choice]]) -> OptionGenerator:
    """Generator whose choices depend on the device family."""

    def _generate(device_type: DeviceType | None) -> Sequence[Choice]:
        if device_type is None:
            return tuple(default)
        return tuple(overrides.get(device_type.family, default))

    return _generate


_TRACKING_MODES: tuple[Choice, ...] = (
    ("0", "GPS Movement Trips"),
    ("1", "Jostle Trips"),
    ("2", "Periodic Update"),
)

# Yabby Edge has no continuous GPS, so movement trips are jostle based only.
_EDGE_TRACKING_MODES: tuple[Choice, ...] = (
    ("1", "Jostle Trips"),
    ("2", "Periodic Update"),
)


# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------

_REGISTRY: dict[str, OptionGenerator] = {
    # Basic tracking (2000 / 2050)
    "bTrackingMode": by_family(_TRACKING_MODES, {DeviceFamily.YABBY_EDGE: _EDGE_TRACKING_MODES}),
    "fGpsPowerMode": fixed((("0", "Low Power"), ("1", "Performance"))),
    "bPeriodicUploadHrMin": steps(1, 24, scale=60, unit="hr"),
    "bInTripUploadMinSec": steps(1, 60, scale=60, unit="min"),
    "bInTripLogMinSec": steps(1, 60, scale=60, unit="min"),
    "bGpsTimeoutMinSec": steps(30, 180, step=10, unit="s"),
    # Advanced tracking (2100)
    "fUploadOnStart": yes_no(),
    "fUploadDuring": yes_no(),
    "fUploadOnEnd": yes_no(),
    "fUploadOnJostle": yes_no(),
    "fAvoidGpsWander": yes_no(),
    "fCellTowerFallback": yes_no(),
    "fDisableWifiScan": inverted_yes_no(),
    "bOnceOffUploadDelayMinutes": steps(0, 60, unit="min", zero_label="Disabled"),
}


def register_options(key: str, generator: OptionGenerator, *, replace: bool = False) -> None:
    """Add an enumerable parameter key.

    Raises :class:`ValueError` if *key* is already registered and
    *replace* is not set.
    """
    if key in _REGISTRY and not replace:
        raise ValueError(f"options for {key!r} are already registered")
    _REGISTRY[key] = generator


def is_enumerable(key: str) -> bool:
    return key in _REGISTRY


def options_for(
    key: str,
    current_value: ParameterValue | None,
    device_type: DeviceType | None = None,
) -> list[ParameterOption] | None:
    """Return the dropdown for *key*, or ``None`` for free-text keys.

    The option equal to *current_value* is marked selected.  A current
    value the generator does not produce is appended as an extra,
    selected option.
    """
    generator = _REGISTRY.get(key)
    if generator is None:
        return None
    return _mark_selected(generator(device_type), value_text(current_value))
