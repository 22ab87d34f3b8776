"""Client configuration for pydmatter."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any

from pydmatter._constants import BASE_URL, GEOTAB_SERVER, RECOVERY_EXPIRY
from pydmatter.exceptions import DmConfigurationError
from pydmatter.models.device import DEFAULT_PROBE_ORDER, DeviceType


def _parse_probe_order(value: str) -> tuple[DeviceType, ...]:
    order: list[DeviceType] = []
    for part in value.split(","):
        name = part.strip()
        if not name:
            continue
        try:
            order.append(DeviceType(name))
        except ValueError as exc:
            raise DmConfigurationError(f"Unknown device type in DM_PROBE_ORDER: {name!r}") from exc
    return tuple(order)


def _parse_pairs(value: str) -> dict[str, str]:
    """Parse ``"a=b,c=d"`` into a dict."""
    pairs: dict[str, str] = {}
    for part in value.split(","):
        if not part.strip():
            continue
        key, sep, val = part.partition("=")
        if not sep:
            raise DmConfigurationError(f"Expected key=value, got {part!r}")
        pairs[key.strip()] = val.strip()
    return pairs


@dataclasses.dataclass(frozen=True)
class GeotabCredentials:
    """Credentials for an already-authenticated Geotab API session.

    Authentication itself happens outside this library; the host add-in
    (or a separate login step) supplies the session id.
    """

    database: str
    username: str
    session_id: str
    server: str = GEOTAB_SERVER

    @property
    def api_url(self) -> str:
        return f"https://{self.server}/apiv1"

    @classmethod
    def from_env(cls, **overrides: Any) -> GeotabCredentials:
        """Create credentials from ``GEOTAB_*`` environment variables."""
        env = os.environ
        _ENV_MAP = {
            "GEOTAB_DATABASE": "database",
            "GEOTAB_USERNAME": "username",
            "GEOTAB_SESSION_ID": "session_id",
            "GEOTAB_SERVER": "server",
        }
        kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_MAP.items():
            val = env.get(env_key)
            if val is not None:
                kwargs[field_name] = val
        kwargs.update(overrides)

        missing = [name for name in ("database", "username", "session_id") if not kwargs.get(name)]
        if missing:
            raise DmConfigurationError(f"Missing Geotab credentials: {', '.join(missing)}")
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class DmConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the serverless proxy that fronts the Digital Matter
        OEM server.  The proxy holds the vendor API token.
    request_timeout : float
        Total timeout in seconds applied to every HTTP request.
    client_filter : str or None
        Tenant label passed to the device-list call.  The pipeline also
        filters locally, so this only reduces payload size.
    tenants : Mapping[str, str]
        Registry identity (Geotab database name) to tenant client label.
        When non-empty, the pipeline scopes devices to the caller's
        tenant and fails if the caller has no entry.
    product_types : Mapping[int, DeviceType]
        Known ``ProductId`` to device type mapping.  Devices whose product
        id is listed skip type probing.
    probe_order : tuple[DeviceType, ...]
        Candidate device types tried in order when the product id is not
        in ``product_types``.
    recovery_expiry : timedelta
        Validity window of the recovery-mode async message.
    """

    base_url: str = BASE_URL
    request_timeout: float = 30.0
    client_filter: str | None = None
    tenants: Mapping[str, str] = dataclasses.field(default_factory=dict)
    product_types: Mapping[int, DeviceType] = dataclasses.field(default_factory=dict)
    probe_order: tuple[DeviceType, ...] = DEFAULT_PROBE_ORDER
    recovery_expiry: timedelta = RECOVERY_EXPIRY

    def __post_init__(self) -> None:
        if not self.probe_order:
            raise DmConfigurationError("probe_order must list at least one device type")
        if self.request_timeout <= 0:
            raise DmConfigurationError("request_timeout must be positive")

    @classmethod
    def from_env(cls, **overrides: Any) -> DmConfig:
        """Create configuration from environment variables.

        Reads ``DM_BASE_URL``, ``DM_REQUEST_TIMEOUT``, ``DM_CLIENT_FILTER``,
        ``DM_TENANTS`` (``database=label,...``), ``DM_PRODUCT_TYPES``
        (``productId=DeviceType,...``), ``DM_PROBE_ORDER`` (comma list) and
        ``DM_RECOVERY_EXPIRY_MINUTES``.  Explicit keyword arguments override
        environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        base_url = env.get("DM_BASE_URL")
        if base_url is not None:
            config_kwargs["base_url"] = base_url.rstrip("/")

        timeout_env = env.get("DM_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        client_filter = env.get("DM_CLIENT_FILTER")
        if client_filter:
            config_kwargs["client_filter"] = client_filter

        tenants_env = env.get("DM_TENANTS")
        if tenants_env and "tenants" not in overrides:
            config_kwargs["tenants"] = _parse_pairs(tenants_env)

        product_env = env.get("DM_PRODUCT_TYPES")
        if product_env and "product_types" not in overrides:
            try:
                config_kwargs["product_types"] = {
                    int(pid): DeviceType(name) for pid, name in _parse_pairs(product_env).items()
                }
            except ValueError as exc:
                raise DmConfigurationError(f"Invalid DM_PRODUCT_TYPES: {product_env!r}") from exc

        order_env = env.get("DM_PROBE_ORDER")
        if order_env and "probe_order" not in overrides:
            config_kwargs["probe_order"] = _parse_probe_order(order_env)

        expiry_env = env.get("DM_RECOVERY_EXPIRY_MINUTES")
        if expiry_env is not None and "recovery_expiry" not in overrides:
            config_kwargs["recovery_expiry"] = timedelta(minutes=float(expiry_env))

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
