"""Helpers for safe debug logging.

Every Geotab call carries the caller's session id inside its JSON-RPC
``credentials`` block, and proxy errors sometimes echo authorization
headers back.  :func:`redact_for_log` masks those values before a
request or response body reaches a DEBUG log line.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "sessionid",
        "password",
        "apitoken",
        "token",
        "authorization",
        "cookie",
    }
)

_MASK = "<redacted>"
_MAX_DEPTH = 16


def _mask(value: Any) -> str:
    """Mask a secret, keeping its last four characters for correlation."""
    text = str(value)
    if len(text) <= 8:
        return _MASK
    return f"{_MASK}…{text[-4:]}"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with secrets masked and long strings cut.

    Pydantic models are dumped by alias first so the log shows the wire
    shape.  *value* itself is never modified.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, Mapping):
        return {
            str(key): (
                _mask(item)
                if str(key).lower() in _SECRET_KEYS
                else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            )
            for key, item in value.items()
        }

    if isinstance(value, (list, tuple)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    return repr(value)
