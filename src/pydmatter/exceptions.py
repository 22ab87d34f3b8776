"""Custom exception hierarchy for pydmatter."""

from __future__ import annotations


class DmError(Exception):
    """Base exception for all pydmatter errors."""


class DmConfigurationError(DmError):
    """Invalid or missing configuration, or an unresolvable tenant."""


class DmBackendError(DmError):
    """Backend call failed (network, non-2xx, malformed payload).

    Raised by both the Digital Matter proxy and the Geotab registry.
    ``detail`` carries the body's ``error`` field when the backend sent
    one, otherwise the HTTP status text.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        detail: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        self.detail = detail or message
        super().__init__(message)


class DmEditSessionError(DmError):
    """Parameter edit session used out of order.

    Covers saving while a save is already in flight, opening a second
    session for the same device, and editing a device whose parameters
    were never fetched.
    """


class DmReloadInProgressError(DmError):
    """A device reload was requested while another one is still running."""
