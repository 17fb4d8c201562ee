"""Client for the Cloudflare DNS API (zones, records, SSL settings).

Authenticates with an API token when one is configured, otherwise with
the legacy ``X-Auth-Email`` / ``X-Auth-Key`` pair.
"""

from __future__ import annotations

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger()


class DnsZone(TypedDict):
    id: str
    name: str
    nameservers: list[str]
    status: str


class DnsRecord(TypedDict):
    id: str
    type: str
    name: str
    content: str
    proxied: bool
    ttl: int


def _zone_from(data: dict[str, object]) -> DnsZone:
    nameservers = data.get("name_servers", [])
    return {
        "id": str(data.get("id", "")),
        "name": str(data.get("name", "")),
        "nameservers": [str(ns) for ns in nameservers] if isinstance(nameservers, list) else [],
        "status": str(data.get("status", "")),
    }


class CloudflareClient:
    """Cloudflare v4 API client."""

    def __init__(
        self,
        api_token: str = "",
        account_id: str = "",
        email: str = "",
        api_key: str = "",
        timeout: float = 30.0,
    ) -> None:
        self.api_token = api_token
        self.account_id = account_id
        self.email = email
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = "https://api.cloudflare.com/client/v4"

    @property
    def is_available(self) -> bool:
        return bool(self.api_token or (self.email and self.api_key))

    def _headers(self) -> dict[str, str]:
        if self.api_token:
            return {
                "Authorization": f"Bearer {self.api_token}",
                "Content-Type": "application/json",
            }
        return {
            "X-Auth-Email": self.email,
            "X-Auth-Key": self.api_key,
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, object] | None = None,
        params: dict[str, str] | None = None,
    ) -> object:
        """Send a request and unwrap the ``result`` member of the envelope."""
        if not self.is_available:
            raise ConfigurationError("Cloudflare credentials not configured")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.request(
                method,
                f"{self.base_url}{path}",
                headers=self._headers(),
                json=json,
                params=params,
            )
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get("success", False):
            errors = body.get("errors") or []
            message = "; ".join(str(e.get("message", e)) for e in errors if isinstance(e, dict))
            raise ProviderError(
                "cloudflare",
                message or f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return body.get("result")

    async def add_zone(self, domain: str) -> DnsZone:
        """Create a full-setup zone for *domain*; returns its assigned nameservers."""
        payload: dict[str, object] = {"name": domain, "jump_start": True, "type": "full"}
        if self.account_id:
            payload["account"] = {"id": self.account_id}
        result = await self._request("POST", "/zones", json=payload)
        zone = _zone_from(result if isinstance(result, dict) else {})
        logger.info("Cloudflare zone created", domain=domain, zone_id=zone["id"])
        return zone

    async def find_zone(self, domain: str) -> DnsZone | None:
        result = await self._request("GET", "/zones", params={"name": domain})
        if isinstance(result, list) and result:
            return _zone_from(result[0])
        return None

    async def delete_zone(self, zone_id: str) -> None:
        await self._request("DELETE", f"/zones/{zone_id}")
        logger.info("Cloudflare zone deleted", zone_id=zone_id)

    async def add_dns_record(
        self,
        zone_id: str,
        record_type: str,
        name: str,
        content: str,
        proxied: bool = True,
    ) -> DnsRecord:
        """Add a record to a zone. ``ttl=1`` means automatic."""
        result = await self._request(
            "POST",
            f"/zones/{zone_id}/dns_records",
            json={
                "type": record_type,
                "name": name,
                "content": content,
                "proxied": proxied,
                "ttl": 1,
            },
        )
        data = result if isinstance(result, dict) else {}
        return {
            "id": str(data.get("id", "")),
            "type": str(data.get("type", record_type)),
            "name": str(data.get("name", name)),
            "content": str(data.get("content", content)),
            "proxied": bool(data.get("proxied", proxied)),
            "ttl": int(data.get("ttl", 1)),
        }

    async def set_ssl_mode(self, zone_id: str, mode: str = "full") -> None:
        await self._request("PATCH", f"/zones/{zone_id}/settings/ssl", json={"value": mode})
