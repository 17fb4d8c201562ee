"""Client for the Z-API WhatsApp gateway (text messages only)."""

from __future__ import annotations

import re

import httpx
import structlog

from domainhub.exceptions import ConfigurationError

logger = structlog.get_logger()


class ZApiClient:
    def __init__(
        self,
        instance: str = "",
        token: str = "",
        client_token: str = "",
        timeout: float = 15.0,
    ) -> None:
        self.instance = instance
        self.token = token
        self.client_token = client_token
        self.timeout = timeout
        self.base_url = "https://api.z-api.io"

    @property
    def is_available(self) -> bool:
        return bool(self.instance and self.token)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.client_token:
            headers["Client-Token"] = self.client_token
        return headers

    async def send_text(self, phone: str, message: str) -> str:
        """Send *message* to *phone* (digits only). Returns the gateway message id."""
        if not self.is_available:
            raise ConfigurationError("Z-API instance/token not configured")
        digits = re.sub(r"\D", "", phone)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/instances/{self.instance}/token/{self.token}/send-text",
                json={"phone": digits, "message": message},
                headers=self._headers(),
            )
            resp.raise_for_status()
            data = resp.json()
        return str(data.get("messageId") or data.get("id") or "")
