"""Client for the Softaculous application installer inside cPanel.

Softaculous is driven through its ``index.live.php`` endpoint with
``api=json`` and HTTP basic auth using the cPanel account password.
WordPress is Softaculous script id 26.
"""

from __future__ import annotations

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.exceptions import ConfigurationError, ProviderError

logger = structlog.get_logger()

WORDPRESS_SCRIPT_ID = "26"


class Installation(TypedDict):
    insid: str
    softdomain: str
    softpath: str
    softurl: str


class WordPressInstall(TypedDict):
    domain: str
    admin_username: str
    admin_password: str
    admin_email: str
    site_name: str
    language: str


class SoftaculousClient:
    def __init__(
        self,
        base_url: str = "",
        username: str = "",
        password: str = "",
        path: str = "/frontend/jupiter/softaculous/index.live.php",
        timeout: float = 90.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.path = path
        self.timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.base_url and self.username and self.password)

    def _client(self, timeout: float | None = None) -> httpx.AsyncClient:
        if not self.is_available:
            raise ConfigurationError("Softaculous (cPanel user/password) not configured")
        return httpx.AsyncClient(
            auth=(self.username, self.password),
            timeout=timeout or self.timeout,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.path}"

    async def list_installations(self) -> list[Installation]:
        async with self._client(timeout=30.0) as client:
            resp = await client.get(
                self.url,
                params={"act": "installations", "soft": WORDPRESS_SCRIPT_ID, "api": "json"},
            )
            resp.raise_for_status()
            body = resp.json()
        # An account without installations answers "installations": [] instead of {}.
        by_script = body.get("installations") or {}
        installs = by_script.get(WORDPRESS_SCRIPT_ID) if isinstance(by_script, dict) else None
        if not isinstance(installs, dict):
            return []
        return [
            {
                "insid": str(insid),
                "softdomain": str(item.get("softdomain", "")).lower(),
                "softpath": str(item.get("softpath", "")),
                "softurl": str(item.get("softurl", "")),
            }
            for insid, item in installs.items()
            if isinstance(item, dict)
        ]

    async def find_installation(self, domain: str) -> Installation | None:
        for install in await self.list_installations():
            if install["softdomain"] == domain.lower():
                return install
        return None

    async def install_wordpress(self, params: WordPressInstall) -> str:
        """Install WordPress at the domain root. Returns the installation id."""
        form = {
            "softsubmit": "1",
            "softdomain": params["domain"],
            "softdirectory": "",
            "admin_username": params["admin_username"],
            "admin_pass": params["admin_password"],
            "admin_email": params["admin_email"],
            "site_name": params["site_name"],
            "site_desc": params["site_name"],
            "dbprefix": "wp_",
            "language": params["language"],
            "auto_upgrade": "1",
            "auto_upgrade_plugins": "1",
            "auto_upgrade_themes": "1",
        }
        async with self._client() as client:
            resp = await client.post(
                self.url,
                params={"act": "software", "soft": WORDPRESS_SCRIPT_ID, "api": "json"},
                data=form,
            )
            resp.raise_for_status()
            body = resp.json()
        if body.get("error"):
            error = body["error"]
            text = "; ".join(map(str, error.values())) if isinstance(error, dict) else str(error)
            raise ProviderError("softaculous", text)
        insid = str(body.get("insid", ""))
        logger.info("WordPress installed", domain=params["domain"], insid=insid)
        return insid

    async def remove_installation(self, insid: str) -> None:
        """Uninstall, deleting the install directory and its database."""
        async with self._client(timeout=60.0) as client:
            resp = await client.post(
                self.url,
                params={"act": "remove", "insid": insid, "api": "json"},
                data={"removeins": "1", "remove_dir": "1", "remove_db": "1"},
            )
            resp.raise_for_status()
            body = resp.json()
        if body.get("done") is not True:
            raise ProviderError("softaculous", str(body.get("error") or "unexpected response"))
        logger.info("WordPress installation removed", insid=insid)
