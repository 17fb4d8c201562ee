"""Client for the WHM JSON API (dedicated hosting accounts).

All calls use ``api.version=1`` and a ``whm user:token`` header; success
is ``metadata.result == 1``.
"""

from __future__ import annotations

import random

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger()

USERNAME_PREFIX = "gex"
_MAX_USERNAME_TRIES = 100


class WhmAccount(TypedDict):
    user: str
    domain: str
    suspended: bool


class WHMClient:
    def __init__(
        self,
        base_url: str = "",
        username: str = "root",
        api_token: str = "",
        timeout: float = 30.0,
        slow_timeout: float = 120.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.api_token = api_token
        self.timeout = timeout
        self.slow_timeout = slow_timeout

    @property
    def is_available(self) -> bool:
        return bool(self.base_url and self.api_token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"whm {self.username}:{self.api_token}"}

    async def _call(
        self, function: str, params: dict[str, str], timeout: float | None = None
    ) -> dict[str, object]:
        if not self.is_available:
            raise ConfigurationError("WHM credentials not configured")
        async with httpx.AsyncClient(timeout=timeout or self.timeout) as client:
            resp = await client.get(
                f"{self.base_url}/json-api/{function}",
                params={"api.version": "1", **params},
                headers=self._headers(),
            )
            resp.raise_for_status()
            body: dict[str, object] = resp.json()
        metadata = body.get("metadata")
        if not isinstance(metadata, dict) or str(metadata.get("result")) != "1":
            reason = metadata.get("reason") if isinstance(metadata, dict) else None
            raise ProviderError("whm", str(reason or f"{function} failed"))
        return body

    async def list_accounts(self, domain: str | None = None) -> list[WhmAccount]:
        params = {"searchtype": "domain", "search": domain} if domain else {}
        body = await self._call("listaccts", params)
        data = body.get("data")
        accounts = data.get("acct", []) if isinstance(data, dict) else []
        return [
            {
                "user": str(acct.get("user", "")).lower(),
                "domain": str(acct.get("domain", "")).lower(),
                "suspended": bool(acct.get("suspended", 0)),
            }
            for acct in accounts
            if isinstance(acct, dict)
        ]

    async def find_account(self, domain: str) -> WhmAccount | None:
        for acct in await self.list_accounts(domain):
            if acct["domain"] == domain.lower():
                return acct
        return None

    async def generate_username(self) -> str:
        """Pick an unused ``gexNNN`` username."""
        taken = {acct["user"] for acct in await self.list_accounts()}
        for _ in range(_MAX_USERNAME_TRIES):
            candidate = f"{USERNAME_PREFIX}{random.randint(0, 999):03d}"
            if candidate not in taken:
                return candidate
        raise ProviderError("whm", "no free account username left")

    async def create_account(
        self,
        domain: str,
        username: str,
        password: str,
        plan: str,
        contact_email: str = "",
    ) -> WhmAccount:
        params = {
            "domain": domain,
            "username": username,
            "password": password,
            "plan": plan,
            "featurelist": "default",
            "cpmod": "jupiter",
            "dkim": "1",
            "spf": "1",
        }
        if contact_email:
            params["contactemail"] = contact_email
        await self._call("createacct", params, timeout=self.slow_timeout)
        logger.info("WHM account created", domain=domain, user=username)
        return {"user": username, "domain": domain.lower(), "suspended": False}

    async def terminate_account(self, username: str) -> None:
        """``removeacct``. A client-side timeout propagates as ``httpx.TimeoutException``."""
        await self._call("removeacct", {"username": username}, timeout=self.slow_timeout)
        logger.info("WHM account terminated", user=username)
