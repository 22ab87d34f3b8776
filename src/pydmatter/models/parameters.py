"""Typed request models for parameter writes.

``SetDeviceParameters`` expects a body of the form::

    {"Devices": ["<serial>"], "ParamSections": [{"Id": "2000", "Params": {...}}]}

Only the sections and keys listed are overwritten on the device; anything
omitted is left untouched, which is what the edit session relies on.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal


class RequestModel(BaseModel):
    """Base class for outgoing request bodies."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_pascal,
    )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready body with vendor key names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ParamSection(RequestModel):
    """One section of a partial parameter update."""

    id: str
    params: dict[str, str] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("params")
    @classmethod
    def _require_params(cls, value: dict[str, str]) -> dict[str, str]:
        if not value:
            raise ValueError("a parameter section must carry at least one value")
        return value


class SetParametersRequest(RequestModel):
    """Body of ``TrackingDevice/SetDeviceParameters``."""

    devices: list[str]
    param_sections: list[ParamSection]

    @field_validator("param_sections")
    @classmethod
    def _require_sections(cls, value: list[ParamSection]) -> list[ParamSection]:
        if not value:
            raise ValueError("at least one parameter section is required")
        return value
