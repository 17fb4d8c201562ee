"""Shared test fixtures and in-memory fakes for the workflow collaborators."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

import httpx
import pytest
from pydantic_ai import models

from domainhub.clients.namecheap import RegistrarFailure, RegistrarSuccess
from domainhub.config import Settings
from domainhub.db import Database
from domainhub.exceptions import ProviderError
from domainhub.hosting import HostingAccount
from domainhub.models.purchase import CandidateDomain
from domainhub.provisioning import ProvisioningPipeline
from domainhub.sessions import SessionRegistry
from domainhub.workflow import PurchaseWorkflow

if TYPE_CHECKING:
    from collections.abc import Callable

    from domainhub.clients.cloudflare import DnsRecord, DnsZone
    from domainhub.clients.namecheap import NameserverUpdate, PurchaseOutcome
    from domainhub.clients.softaculous import Installation, WordPressInstall
    from domainhub.models.domain import ContactProfile, RegistrarDomainInfo
    from domainhub.models.events import WorkflowEvent
    from domainhub.models.progress import ProgressStatus, ProgressStep

# Safety net: block all real LLM API calls during tests.
# TestModel and FunctionModel are exempt from this check.
models.ALLOW_MODEL_REQUESTS = False


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        anthropic_api_key="test-key",
        registrant_first_name="Ana",
        registrant_last_name="Silva",
        registrant_email="ana@example.com",
        hosting_server_ip="203.0.113.10",
        wordpress_admin_user="admin",
        wordpress_admin_password="s3cret",
        wordpress_admin_email="admin@example.com",
        retry_delay_seconds=0,
        zone_propagation_delay_seconds=0,
        cms_settle_delay_seconds=0,
        terminate_reprobe_delay_seconds=0,
        data_dir=tmp_path / "data",
        log_level="DEBUG",
        log_format="console",
        _env_file=None,
    )


@pytest.fixture()
def db(tmp_path) -> Database:
    db = Database(tmp_path / "test.db")
    db.init_schema()
    yield db
    db.close()


# --- Fakes ---


class RecordingStore:
    """Database wrapper that remembers every accepted progress write."""

    def __init__(self, db: Database) -> None:
        self.db = db
        self.writes: list[tuple[str, str]] = []

    def __getattr__(self, name: str) -> object:
        return getattr(self.db, name)

    def upsert_progress(
        self,
        session_id: str,
        step: ProgressStep,
        status: ProgressStatus,
        message: str = "",
        domain_name: str | None = None,
        platform: str = "",
        force: bool = False,
    ) -> bool:
        accepted = self.db.upsert_progress(
            session_id, step, status, message, domain_name, platform, force
        )
        if accepted:
            self.writes.append((step.value, status.value))
        return accepted

    def step_sequence(self) -> list[str]:
        """Accepted steps with consecutive repeats collapsed."""
        seq: list[str] = []
        for step, _ in self.writes:
            if not seq or seq[-1] != step:
                seq.append(step)
        return seq


class FakeOracle:
    """Hands out ``cand1.online``, ``cand2.online`` ... unless *names* is given."""

    def __init__(self) -> None:
        self.names: list[str | None] = []
        self.calls: list[bool] = []
        self.error: Exception | None = None

    async def generate(self, niche: str, language: str, diversify: bool = False) -> str | None:
        self.calls.append(diversify)
        if self.error is not None:
            raise self.error
        if self.names:
            return self.names.pop(0)
        return f"cand{len(self.calls)}.online"


class FakeChecker:
    def __init__(self) -> None:
        self.default_available = True
        self.unavailable: set[str] = set()
        self.prices: dict[str, Decimal] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.on_check: Callable[[str], None] | None = None

    async def check(self, name: str) -> CandidateDomain:
        self.calls.append(name)
        if self.on_check is not None:
            self.on_check(name)
        if name in self.errors:
            raise self.errors[name]
        return CandidateDomain(
            name=name,
            price=self.prices.get(name, Decimal("0.99")),
            available=self.default_available and name not in self.unavailable,
        )


class FakeRegistrar:
    def __init__(self) -> None:
        self.is_available = True
        self.failures: dict[str, RegistrarFailure] = {}
        self.purchases: list[str] = []
        self.contacts: list[ContactProfile] = []
        self.nameserver_calls: list[tuple[str, list[str]]] = []
        self.nameserver_error: Exception | None = None
        self.info: RegistrarDomainInfo | None = None
        self.on_purchase: Callable[[str], None] | None = None

    async def purchase(self, domain: str, contact: ContactProfile) -> PurchaseOutcome:
        self.purchases.append(domain)
        self.contacts.append(contact)
        if self.on_purchase is not None:
            self.on_purchase(domain)
        if domain in self.failures:
            return self.failures[domain]
        return RegistrarSuccess(domain=domain, charged=Decimal("0.99"))

    async def get_info(self, domain: str) -> RegistrarDomainInfo | None:
        return self.info

    async def set_nameservers(self, domain: str, nameservers: list[str]) -> NameserverUpdate:
        self.nameserver_calls.append((domain, list(nameservers)))
        if self.nameserver_error is not None:
            raise self.nameserver_error
        return {"success": True, "domain": domain, "updated": True}


class FakeDns:
    NAMESERVERS = ["ada.ns.cloudflare.com", "bob.ns.cloudflare.com"]

    def __init__(self) -> None:
        self.is_available = True
        self.zones: dict[str, DnsZone] = {}
        self.records: list[tuple[str, str, str, str, bool]] = []
        self.ssl_modes: dict[str, str] = {}
        self.deleted: list[str] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ProviderError("cloudflare", f"{operation} refused", status_code=400)

    async def add_zone(self, domain: str) -> DnsZone:
        self._maybe_fail("add_zone")
        zone: DnsZone = {
            "id": f"zone-{domain}",
            "name": domain,
            "nameservers": list(self.NAMESERVERS),
            "status": "pending",
        }
        self.zones[domain] = zone
        return zone

    async def find_zone(self, domain: str) -> DnsZone | None:
        self._maybe_fail("find_zone")
        return self.zones.get(domain)

    async def delete_zone(self, zone_id: str) -> None:
        self._maybe_fail("delete_zone")
        self.deleted.append(zone_id)
        self.zones = {d: z for d, z in self.zones.items() if z["id"] != zone_id}

    async def add_dns_record(
        self,
        zone_id: str,
        record_type: str,
        name: str,
        content: str,
        proxied: bool = True,
    ) -> DnsRecord:
        self._maybe_fail(f"add_dns_record:{record_type}")
        self.records.append((zone_id, record_type, name, content, proxied))
        return {
            "id": f"rec-{len(self.records)}",
            "type": record_type,
            "name": name,
            "content": content,
            "proxied": proxied,
            "ttl": 1,
        }

    async def set_ssl_mode(self, zone_id: str, mode: str = "full") -> None:
        self._maybe_fail("set_ssl_mode")
        self.ssl_modes[zone_id] = mode


class FakeHosting:
    kind = "addon"

    def __init__(self) -> None:
        self.is_available = True
        self.accounts: dict[str, HostingAccount] = {}
        self.created: list[str] = []
        self.removed: list[HostingAccount] = []
        self.fail_on: set[str] = set()
        self.timeout_on_remove = False
        self.remove_despite_timeout = False

    async def find(self, domain: str) -> HostingAccount | None:
        if "find" in self.fail_on:
            raise ProviderError("cpanel", "listing failed", status_code=500)
        return self.accounts.get(domain)

    async def create(self, domain: str) -> HostingAccount:
        if "create" in self.fail_on:
            raise ProviderError("cpanel", "addon domain creation refused")
        self.created.append(domain)
        account = HostingAccount(domain=domain, kind=self.kind, identifier=domain.split(".")[0])
        self.accounts[domain] = account
        return account

    async def remove(self, account: HostingAccount) -> None:
        self.removed.append(account)
        if self.timeout_on_remove:
            if self.remove_despite_timeout:
                self.accounts.pop(account.domain, None)
            raise httpx.ReadTimeout("timed out")
        if "remove" in self.fail_on:
            raise ProviderError("cpanel", "removal refused")
        self.accounts.pop(account.domain, None)


class FakeCms:
    def __init__(self) -> None:
        self.is_available = True
        self.installations: dict[str, Installation] = {}
        self.installed: list[WordPressInstall] = []
        self.removed: list[str] = []
        self.fail_on: set[str] = set()

    async def find_installation(self, domain: str) -> Installation | None:
        if "find" in self.fail_on:
            raise ProviderError("softaculous", "listing failed")
        return self.installations.get(domain)

    async def install_wordpress(self, params: WordPressInstall) -> str:
        if "install" in self.fail_on:
            raise ProviderError("softaculous", "installation failed")
        self.installed.append(params)
        insid = f"26_{len(self.installed)}"
        self.installations[params["domain"]] = {
            "insid": insid,
            "softdomain": params["domain"],
            "softpath": f"/home/user/public_html/{params['domain']}",
            "softurl": f"https://{params['domain']}",
        }
        return insid

    async def remove_installation(self, insid: str) -> None:
        if "remove" in self.fail_on:
            raise ProviderError("softaculous", "uninstall failed")
        self.removed.append(insid)


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[WorkflowEvent] = []

    async def publish(self, event: WorkflowEvent) -> None:
        self.events.append(event)


@pytest.fixture()
def store(db: Database) -> RecordingStore:
    return RecordingStore(db)


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture()
def checker() -> FakeChecker:
    return FakeChecker()


@pytest.fixture()
def registrar() -> FakeRegistrar:
    return FakeRegistrar()


@pytest.fixture()
def dns() -> FakeDns:
    return FakeDns()


@pytest.fixture()
def hosting() -> FakeHosting:
    return FakeHosting()


@pytest.fixture()
def cms() -> FakeCms:
    return FakeCms()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def pipeline(
    settings: Settings,
    dns: FakeDns,
    registrar: FakeRegistrar,
    hosting: FakeHosting,
    cms: FakeCms,
    store: RecordingStore,
    sink: RecordingSink,
) -> ProvisioningPipeline:
    return ProvisioningPipeline(
        settings,
        dns=dns,
        registrar=registrar,
        hosting=hosting,
        cms=cms,
        progress=store,
        domains=store,
        events=sink,
    )


@pytest.fixture()
def workflow(
    settings: Settings,
    store: RecordingStore,
    oracle: FakeOracle,
    checker: FakeChecker,
    registrar: FakeRegistrar,
    pipeline: ProvisioningPipeline,
    sink: RecordingSink,
) -> PurchaseWorkflow:
    return PurchaseWorkflow(
        settings,
        sessions=SessionRegistry(),
        store=store,
        oracle=oracle,
        checker=checker,
        registrar=registrar,
        pipeline=pipeline,
        events=sink,
    )
