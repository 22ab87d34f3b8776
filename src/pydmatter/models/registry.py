"""Geotab registry device model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pydmatter._normalize import safe_str


class RegistryDevice(BaseModel):
    """A device record from the Geotab ``Get`` / ``Device`` call.

    Only the identity fields used for matching are mapped; everything
    else the registry returns stays in ``raw``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    name: str = ""
    serial_number: str | None = None

    raw: dict[str, Any] = Field(default_factory=dict)
    """Full registry record."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged

    @field_validator("serial_number", mode="before")
    @classmethod
    def _coerce_serial(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return safe_str(value) or ""
