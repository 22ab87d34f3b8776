"""Write-side models: async messages and acknowledgements."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_serializer, model_validator

from pydmatter.models._base import DmBaseModel
from pydmatter.models.parameters import RequestModel


class AsyncMessage(RequestModel):
    """An ``AsyncMessaging/Send`` command.

    The OEM server queues the message until the device next connects,
    or drops it once ``expiry`` has passed.
    """

    message_type: int
    can_address: int = Field(serialization_alias="CANAddress")
    data: list[int]
    expiry: datetime = Field(serialization_alias="ExpiryDateUTC")

    @field_serializer("expiry")
    def _serialize_expiry(self, value: datetime) -> str:
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CommandAck(DmBaseModel):
    """Generic acknowledgement for write endpoints.

    The proxy relays whatever the OEM server returned; the body is kept in
    ``raw`` and an ``error`` field, when present, marks a failed write.
    """

    error: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _wrap_non_dict(cls, values: Any) -> Any:
        if isinstance(values, dict):
            return values
        return {"raw": {"value": values}}

    @property
    def ok(self) -> bool:
        return self.error is None
