"""Tenant resolution for client-scoped deployments.

One vendor account can serve several fleets.  Each device carries a
``Client`` label, and each fleet is identified by its Geotab database.
The resolver maps the caller's registry identity to that label.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

from pydmatter.exceptions import DmConfigurationError
from pydmatter.registry import RegistryIdentity


class TenantResolver(Protocol):
    def resolve(self, identity: RegistryIdentity) -> str:
        """Return the tenant label, or raise :class:`DmConfigurationError`."""
        ...


class MappingTenantResolver:
    """Resolve tenants from a static ``database -> label`` table.

    Database names are compared case-insensitively, matching how Geotab
    treats them.
    """

    def __init__(self, tenants: Mapping[str, str]) -> None:
        self._tenants = {database.lower(): label for database, label in tenants.items()}

    def resolve(self, identity: RegistryIdentity) -> str:
        label = self._tenants.get(identity.database.lower())
        if not label:
            raise DmConfigurationError(f"No tenant configured for Geotab database {identity.database!r}")
        return label
