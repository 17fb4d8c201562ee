"""Client for the cPanel account API (addon domains).

UAPI calls (``/execute/...``) and the older API2 calls
(``/json-api/cpanel``) both authenticate with a ``cpanel user:token``
header against the account's cPanel URL.
"""

from __future__ import annotations

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger()


class AddonDomain(TypedDict):
    domain: str
    subdomain: str
    rootdomain: str
    dir: str


class CPanelClient:
    def __init__(
        self,
        base_url: str = "",
        username: str = "",
        api_token: str = "",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.api_token = api_token
        self.timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.base_url and self.username and self.api_token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"cpanel {self.username}:{self.api_token}"}

    def _ensure_configured(self) -> None:
        if not self.is_available:
            raise ConfigurationError("cPanel credentials not configured")

    async def list_addon_domains(self) -> list[AddonDomain]:
        """API2 ``AddonDomain::listaddondomains``."""
        self._ensure_configured()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(
                f"{self.base_url}/json-api/cpanel",
                params={
                    "cpanel_jsonapi_apiversion": "2",
                    "cpanel_jsonapi_module": "AddonDomain",
                    "cpanel_jsonapi_func": "listaddondomains",
                },
                headers=self._headers(),
            )
            resp.raise_for_status()
            data = resp.json().get("cpanelresult", {}).get("data") or []
        return [
            {
                "domain": str(item.get("domain", "")).lower(),
                "subdomain": str(item.get("subdomain", "")),
                "rootdomain": str(item.get("rootdomain", "")),
                "dir": str(item.get("dir", "")),
            }
            for item in data
            if isinstance(item, dict)
        ]

    async def find_addon_domain(self, domain: str) -> AddonDomain | None:
        for addon in await self.list_addon_domains():
            if addon["domain"] == domain.lower():
                return addon
        return None

    async def add_addon_domain(self, domain: str, subdomain: str, directory: str) -> None:
        """UAPI ``AddonDomain/addaddondomain``. Raises ProviderError on refusal."""
        self._ensure_configured()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/execute/AddonDomain/addaddondomain",
                data={"newdomain": domain, "subdomain": subdomain, "dir": directory},
                headers=self._headers(),
            )
            resp.raise_for_status()
            body = resp.json()
        if body.get("status") != 1:
            errors = body.get("errors") or ["addon domain creation refused"]
            raise ProviderError("cpanel", "; ".join(str(e) for e in errors))
        logger.info("cPanel addon domain created", domain=domain, dir=directory)

    async def remove_addon_domain(self, domain: str, subdomain: str) -> None:
        """API2 ``AddonDomain::deladdondomain``. Raises ProviderError on refusal."""
        self._ensure_configured()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(
                f"{self.base_url}/json-api/cpanel",
                params={
                    "cpanel_jsonapi_apiversion": "2",
                    "cpanel_jsonapi_module": "AddonDomain",
                    "cpanel_jsonapi_func": "deladdondomain",
                    "domain": domain,
                    "subdomain": subdomain,
                },
                headers=self._headers(),
            )
            resp.raise_for_status()
            result = resp.json().get("cpanelresult", {})
        data = result.get("data") or [{}]
        first = data[0] if isinstance(data[0], dict) else {}
        if result.get("error") or str(first.get("result", "0")) != "1":
            raise ProviderError(
                "cpanel", str(result.get("error") or first.get("reason") or "removal refused")
            )
        logger.info("cPanel addon domain removed", domain=domain)
