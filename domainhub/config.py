"""Application configuration via pydantic-settings."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from domainhub.models.domain import ContactProfile


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Registrar (Namecheap)
    namecheap_api_user: str = ""
    namecheap_api_key: str = ""
    namecheap_client_ip: str = ""
    namecheap_sandbox: bool = False

    # Registrant contact, used for registrant/tech/admin/billing
    registrant_first_name: str = ""
    registrant_last_name: str = ""
    registrant_address: str = ""
    registrant_city: str = ""
    registrant_state: str = ""
    registrant_postal_code: str = ""
    registrant_country: str = "BR"
    registrant_phone: str = ""
    registrant_email: str = ""
    registrant_organization: str = ""

    # Availability (GoDaddy)
    godaddy_api_key: str = ""
    godaddy_api_secret: str = ""
    godaddy_base_url: str = "https://api.godaddy.com"

    # DNS (Cloudflare): either an API token or the legacy email + global key
    cloudflare_api_token: str = ""
    cloudflare_email: str = ""
    cloudflare_api_key: str = ""
    cloudflare_account_id: str = ""
    cloudflare_ssl_mode: str = "full"
    hosting_server_ip: str = ""

    # Control panel (cPanel + Softaculous)
    cpanel_url: str = ""
    cpanel_username: str = ""
    cpanel_api_token: str = ""
    cpanel_password: str = ""
    softaculous_path: str = "/frontend/jupiter/softaculous/index.live.php"

    # Dedicated accounts (WHM)
    whm_url: str = ""
    whm_username: str = "root"
    whm_api_token: str = ""
    whm_account_plan: str = "default"
    whm_account_password: str = ""
    whm_contact_email: str = ""
    hosting_mode: Literal["addon", "account"] = "addon"

    # CMS defaults
    wordpress_admin_user: str = ""
    wordpress_admin_password: str = ""
    wordpress_admin_email: str = ""
    wordpress_language: str = "pt_BR"

    # LLM settings
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-5-20250929"
    llm_max_tokens: int = 512
    llm_temperature: float = 0.7
    llm_retry_temperature: float = 1.0
    error_translation_language: str = ""

    # Name generation
    domain_tld: str = "online"
    domain_word_count: int = 3

    # Notifications (Z-API WhatsApp gateway)
    zapi_instance: str = ""
    zapi_token: str = ""
    zapi_client_token: str = ""
    notify_phone_number: str = ""
    notify_timezone: str = "America/Sao_Paulo"

    # Workflow
    max_purchase_attempts: int = 10
    price_ceiling_usd: Decimal = Decimal("1.00")
    retry_delay_seconds: float = 2.0
    zone_propagation_delay_seconds: float = 3.0
    cms_settle_delay_seconds: float = 2.0
    terminate_reprobe_delay_seconds: float = 5.0
    session_ttl_seconds: int = 3600

    # Registrar sync
    sync_page_size: int = 100
    sync_page_delay_seconds: float = 0.2
    sync_rate_limit_attempts: int = 4
    sync_rate_limit_delay_seconds: float = 5.0

    # Data directory
    data_dir: Path = Path("./data")

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def db_path(self) -> Path:
        return self.data_dir / "domainhub.db"

    def ensure_data_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def contact_profile(self) -> ContactProfile:
        """Registrant contact applied to every contact role of a registration."""
        from domainhub.models.domain import ContactProfile

        return ContactProfile(
            first_name=self.registrant_first_name,
            last_name=self.registrant_last_name,
            address=self.registrant_address,
            city=self.registrant_city,
            state=self.registrant_state,
            postal_code=self.registrant_postal_code,
            country=self.registrant_country,
            phone=self.registrant_phone,
            email=self.registrant_email,
            organization=self.registrant_organization,
        )
