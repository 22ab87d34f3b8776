"""Shared helpers for proxy endpoint modules.

This module centralizes the most repeated patterns:
- issuing a GET where a 404 means "absent" rather than failure
- checking that a decoded body has the expected shape

It is internal to pydmatter and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydmatter._transport import Transport
from pydmatter.exceptions import DmBackendError

_ABSENT_STATUS: frozenset[int] = frozenset({404})


def device_query(product_id: int, serial_number: str) -> dict[str, str]:
    """Query string that identifies one device on the OEM server."""
    return {"product": str(product_id), "id": serial_number}


async def get_optional(
    transport: Transport,
    endpoint: str,
    params: Mapping[str, Any],
) -> dict[str, Any] | None:
    """GET *endpoint* and return the body, or ``None`` when absent.

    A 404 and an empty body both count as absent.  Any other failure
    propagates as :class:`DmBackendError`.
    """
    try:
        body = await transport.request_json("GET", endpoint, params=params)
    except DmBackendError as exc:
        if exc.status_code in _ABSENT_STATUS:
            return None
        raise
    if body is None:
        return None
    return require_dict(endpoint, body)


def require_dict(endpoint: str, body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise DmBackendError(
            f"{endpoint} returned {type(body).__name__}, expected an object",
            endpoint=endpoint,
        )
    return body
