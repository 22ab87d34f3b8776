"""Async messaging endpoint: /api/send-recovery-mode (AsyncMessaging/Send)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from pydmatter._constants import (
    RECOVERY_CAN_ADDRESS,
    RECOVERY_EXPIRY,
    RECOVERY_MESSAGE_TYPE,
    RECOVERY_MODE_ENDPOINT,
    RECOVERY_PAYLOAD,
)
from pydmatter._transport import Transport
from pydmatter.models.command import AsyncMessage, CommandAck

_logger = logging.getLogger(__name__)


def build_recovery_message(now: datetime, expiry: timedelta = RECOVERY_EXPIRY) -> AsyncMessage:
    """Build the recovery-mode message, valid until ``now + expiry``."""
    return AsyncMessage(
        message_type=RECOVERY_MESSAGE_TYPE,
        can_address=RECOVERY_CAN_ADDRESS,
        data=list(RECOVERY_PAYLOAD),
        expiry=now.astimezone(UTC) + expiry,
    )


async def send_recovery_mode(
    transport: Transport,
    serial_number: str,
    *,
    expiry: timedelta = RECOVERY_EXPIRY,
    now: datetime | None = None,
) -> CommandAck:
    """Queue a recovery-mode command for *serial_number*.

    The expiry timestamp is computed from the clock at call time.
    """
    if now is None:
        now = datetime.now(UTC)
    message = build_recovery_message(now, expiry)
    body = await transport.request_json(
        "POST",
        RECOVERY_MODE_ENDPOINT,
        params={"serial": serial_number},
        json_body=message.to_payload(),
    )
    _logger.debug("Recovery mode queued serial=%s expires=%s", serial_number, message.expiry)
    return CommandAck.model_validate(body if body is not None else {})
