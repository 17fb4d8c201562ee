"""Port interfaces (Protocols) for the workflows' external collaborators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from pydantic import BaseModel

    from domainhub.clients.cloudflare import DnsRecord, DnsZone
    from domainhub.clients.namecheap import DomainPage, NameserverUpdate, PurchaseOutcome
    from domainhub.clients.softaculous import Installation, WordPressInstall
    from domainhub.hosting import HostingAccount
    from domainhub.models.domain import ContactProfile, DomainRecord, RegistrarDomainInfo
    from domainhub.models.events import WorkflowEvent
    from domainhub.models.progress import ProgressStatus, ProgressStep
    from domainhub.models.purchase import CandidateDomain

_M = TypeVar("_M", bound="BaseModel")


@runtime_checkable
class LLMPort(Protocol):
    @property
    def is_available(self) -> bool: ...

    async def generate(
        self,
        prompt: str,
        response_model: type[_M],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> _M: ...

    async def generate_text(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str: ...


@runtime_checkable
class AvailabilityPort(Protocol):
    async def check(self, name: str) -> CandidateDomain: ...


@runtime_checkable
class NameOraclePort(Protocol):
    async def generate(self, niche: str, language: str, diversify: bool = False) -> str | None: ...


@runtime_checkable
class RegistrarPort(Protocol):
    @property
    def is_available(self) -> bool: ...

    async def purchase(self, domain: str, contact: ContactProfile) -> PurchaseOutcome: ...
    async def get_info(self, domain: str) -> RegistrarDomainInfo | None: ...
    async def set_nameservers(self, domain: str, nameservers: list[str]) -> NameserverUpdate: ...


@runtime_checkable
class DomainListingPort(Protocol):
    """Registrar account listing, paged."""

    @property
    def is_available(self) -> bool: ...

    async def list_domains(self, page: int = 1, page_size: int = 100) -> DomainPage: ...


@runtime_checkable
class DnsPort(Protocol):
    @property
    def is_available(self) -> bool: ...

    async def add_zone(self, domain: str) -> DnsZone: ...
    async def find_zone(self, domain: str) -> DnsZone | None: ...
    async def delete_zone(self, zone_id: str) -> None: ...
    async def add_dns_record(
        self,
        zone_id: str,
        record_type: str,
        name: str,
        content: str,
        proxied: bool = True,
    ) -> DnsRecord: ...
    async def set_ssl_mode(self, zone_id: str, mode: str = "full") -> None: ...


@runtime_checkable
class HostingPort(Protocol):
    """A place to host a domain: addon domain or dedicated account."""

    kind: str

    @property
    def is_available(self) -> bool: ...

    async def find(self, domain: str) -> HostingAccount | None: ...
    async def create(self, domain: str) -> HostingAccount: ...
    async def remove(self, account: HostingAccount) -> None: ...


@runtime_checkable
class CmsPort(Protocol):
    @property
    def is_available(self) -> bool: ...

    async def find_installation(self, domain: str) -> Installation | None: ...
    async def install_wordpress(self, params: WordPressInstall) -> str: ...
    async def remove_installation(self, insid: str) -> None: ...


@runtime_checkable
class ProgressStorePort(Protocol):
    def upsert_progress(
        self,
        session_id: str,
        step: ProgressStep,
        status: ProgressStatus,
        message: str = "",
        domain_name: str | None = None,
        platform: str = "",
        force: bool = False,
    ) -> bool: ...
    def request_cancel(self, session_id: str) -> bool: ...
    def is_cancel_requested(self, session_id: str) -> bool: ...


@runtime_checkable
class DomainStorePort(Protocol):
    def upsert_domain(self, record: DomainRecord) -> DomainRecord: ...
    def get_domain_by_name(
        self, domain_name: str, user_id: str | None = None
    ) -> DomainRecord | None: ...
    def mark_deactivated(self, domain_id: int) -> bool: ...
    def log_activity(
        self,
        domain_id: int,
        user_id: str,
        action: str,
        old_value: str | None = None,
        new_value: str | None = None,
    ) -> None: ...


@runtime_checkable
class EventSink(Protocol):
    """Consumer of workflow events. Must not raise."""

    async def publish(self, event: WorkflowEvent) -> None: ...


@runtime_checkable
class TranslatorPort(Protocol):
    async def translate(self, message: str) -> str: ...
