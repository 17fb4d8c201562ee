"""Client for the GoDaddy domain availability API.

Only availability is used: purchases go through the registrar client.
GoDaddy reports prices in micro-units (1 USD == 1_000_000).
"""

from __future__ import annotations

from decimal import Decimal

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger()

MICRO_UNITS = Decimal(1_000_000)

_ERROR_MESSAGES = {
    401: "authentication failed, check the API key and secret",
    403: "API key lacks permission for availability checks",
    404: "domain or endpoint not found",
    422: "domain is not valid for an availability check",
}


class AvailabilityResponse(TypedDict):
    domain: str
    available: bool
    price_micros: int | None
    currency: str
    definitive: bool


class GoDaddyClient:
    """Thin wrapper over ``GET /v1/domains/available``."""

    def __init__(
        self,
        api_key: str = "",
        api_secret: str = "",
        base_url: str = "https://api.godaddy.com",
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"sso-key {self.api_key}:{self.api_secret}",
            "Accept": "application/json",
        }

    async def check(self, domain: str) -> AvailabilityResponse:
        """Full (non-cached) availability check for *domain*.

        Raises:
            ConfigurationError: credentials missing.
            ProviderError: the API answered with an error status.
            httpx.TransportError: network failure or timeout.
        """
        if not self.is_available:
            raise ConfigurationError("GoDaddy API key/secret not configured")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.get(
                f"{self.base_url}/v1/domains/available",
                params={"domain": domain, "checkType": "FULL", "forTransfer": "false"},
                headers=self._headers(),
            )
        if resp.status_code >= 400:
            raise ProviderError(
                "godaddy",
                _ERROR_MESSAGES.get(resp.status_code, _error_text(resp)),
                status_code=resp.status_code,
            )

        data: dict[str, object] = resp.json()
        price = data.get("price")
        return {
            "domain": str(data.get("domain", domain)),
            "available": bool(data.get("available", False)),
            "price_micros": int(price) if isinstance(price, int | float) else None,
            "currency": str(data.get("currency", "USD")),
            "definitive": bool(data.get("definitive", False)),
        }


def _error_text(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}"
