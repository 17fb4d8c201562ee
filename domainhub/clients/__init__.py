"""HTTP adapters for external services.

Each client follows the same pattern:
- Accepts credentials in __init__
- Exposes an `is_available` property (True when credentials are set)
- Raises ConfigurationError when called without credentials
- Uses httpx.AsyncClient with a per-call timeout
"""

from domainhub.clients.cloudflare import CloudflareClient
from domainhub.clients.cpanel import CPanelClient
from domainhub.clients.godaddy import GoDaddyClient
from domainhub.clients.namecheap import NamecheapClient
from domainhub.clients.softaculous import SoftaculousClient
from domainhub.clients.whm import WHMClient
from domainhub.clients.zapi import ZApiClient

__all__ = [
    "CPanelClient",
    "CloudflareClient",
    "GoDaddyClient",
    "NamecheapClient",
    "SoftaculousClient",
    "WHMClient",
    "ZApiClient",
]
