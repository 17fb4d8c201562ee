"""Hosting backends: addon domain on a shared cPanel account, or a dedicated WHM account.

Both expose the same find / create / remove surface so provisioning and
teardown do not care which mode is configured.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from domainhub.clients.cpanel import CPanelClient
    from domainhub.clients.whm import WHMClient

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class HostingAccount:
    """Where a domain is hosted. *identifier* is the addon subdomain or the WHM username."""

    domain: str
    kind: str
    identifier: str
    details: dict[str, str] = field(default_factory=dict)


class AddonDomainHosting:
    kind = "addon"

    def __init__(self, cpanel: CPanelClient) -> None:
        self._cpanel = cpanel

    @property
    def is_available(self) -> bool:
        return self._cpanel.is_available

    async def find(self, domain: str) -> HostingAccount | None:
        addon = await self._cpanel.find_addon_domain(domain)
        if addon is None:
            return None
        subdomain = addon["subdomain"]
        if addon["rootdomain"]:
            subdomain = f"{subdomain}.{addon['rootdomain']}"
        return HostingAccount(
            domain=addon["domain"],
            kind=self.kind,
            identifier=subdomain,
            details={"dir": addon["dir"], "rootdomain": addon["rootdomain"]},
        )

    async def create(self, domain: str) -> HostingAccount:
        label = domain.split(".", 1)[0]
        directory = f"/public_html/{domain}"
        await self._cpanel.add_addon_domain(domain, label, directory)
        return HostingAccount(
            domain=domain, kind=self.kind, identifier=label, details={"dir": directory}
        )

    async def remove(self, account: HostingAccount) -> None:
        await self._cpanel.remove_addon_domain(account.domain, account.identifier)


class WhmAccountHosting:
    kind = "account"

    def __init__(
        self,
        whm: WHMClient,
        plan: str = "default",
        password: str = "",
        contact_email: str = "",
    ) -> None:
        self._whm = whm
        self._plan = plan
        self._password = password
        self._contact_email = contact_email

    @property
    def is_available(self) -> bool:
        return self._whm.is_available

    async def find(self, domain: str) -> HostingAccount | None:
        acct = await self._whm.find_account(domain)
        if acct is None:
            return None
        return HostingAccount(
            domain=acct["domain"],
            kind=self.kind,
            identifier=acct["user"],
            details={"suspended": str(acct["suspended"]).lower()},
        )

    async def create(self, domain: str) -> HostingAccount:
        username = await self._whm.generate_username()
        acct = await self._whm.create_account(
            domain,
            username,
            self._password or secrets.token_urlsafe(16),
            self._plan,
            contact_email=self._contact_email,
        )
        return HostingAccount(domain=acct["domain"], kind=self.kind, identifier=acct["user"])

    async def remove(self, account: HostingAccount) -> None:
        await self._whm.terminate_account(account.identifier)
