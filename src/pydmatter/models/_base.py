"""Base model for Digital Matter API payloads.

Every vendor payload model inherits from :class:`DmBaseModel` which
provides:

* ``alias_generator=to_pascal`` so the OEM server's PascalCase keys
  (``SerialNumber``, ``ProductId``) map automatically to snake_case fields.
* A ``model_validator(mode="before")`` that drops empty-string and
  ``None`` values so the field default is used.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_pascal

# Values the proxy uses for "not available".
_SENTINELS = frozenset({"", "null"})


class DmBaseModel(BaseModel):
    """Base for Digital Matter API payload models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_pascal,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API response dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_dm_values(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = DmBaseModel._clean_dict(values)
        # Keep an explicit raw= from keyword construction.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
