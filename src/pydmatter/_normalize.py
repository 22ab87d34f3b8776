"""Normalization helpers.

Centralizes defensive parsing of loosely typed proxy payloads.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def clamp_percentage(value: Any) -> int | None:
    """Parse a battery percentage, clamping into ``0..100``."""
    parsed = safe_int(value)
    if parsed is None:
        return None
    return max(0, min(100, parsed))


def normalize_parameters(data: Any) -> dict[str, dict[str, str | int | float]]:
    """Coerce a ``SystemParameters`` payload into ``{section: {key: value}}``.

    Section ids are stringified (the OEM server sometimes sends them as
    numbers).  Sections that are not objects are dropped, as are nested
    values that are not scalars.
    """
    if not isinstance(data, dict):
        return {}
    sections: dict[str, dict[str, str | int | float]] = {}
    for section_id, params in data.items():
        if not isinstance(params, dict):
            continue
        scalars: dict[str, str | int | float] = {}
        for key, value in params.items():
            if isinstance(value, bool):
                scalars[str(key)] = int(value)
            elif isinstance(value, (str, int, float)):
                scalars[str(key)] = value
        sections[str(section_id)] = scalars
    return sections
