"""Wires Settings into clients, the purchase workflow and the teardown orchestrator."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog

from domainhub.availability import AvailabilityChecker
from domainhub.clients import (
    CloudflareClient,
    CPanelClient,
    GoDaddyClient,
    NamecheapClient,
    SoftaculousClient,
    WHMClient,
    ZApiClient,
)
from domainhub.hosting import AddonDomainHosting, WhmAccountHosting
from domainhub.llm import LLMClient
from domainhub.notifications import Notifier
from domainhub.oracle import NameOracle
from domainhub.provisioning import ProvisioningPipeline
from domainhub.sessions import SessionRegistry
from domainhub.sync import RegistrarSync
from domainhub.teardown import TeardownOrchestrator
from domainhub.translation import ErrorTranslator
from domainhub.workflow import PurchaseWorkflow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from domainhub.config import Settings
    from domainhub.db import Database
    from domainhub.protocols import HostingPort

logger = structlog.get_logger()


def build_hosting(settings: Settings) -> HostingPort:
    """Addon domain on the shared cPanel account, or a dedicated WHM account."""
    if settings.hosting_mode == "account":
        whm = WHMClient(
            base_url=settings.whm_url,
            username=settings.whm_username,
            api_token=settings.whm_api_token,
        )
        return WhmAccountHosting(
            whm,
            plan=settings.whm_account_plan,
            password=settings.whm_account_password,
            contact_email=settings.whm_contact_email,
        )
    cpanel = CPanelClient(
        base_url=settings.cpanel_url,
        username=settings.cpanel_username,
        api_token=settings.cpanel_api_token,
    )
    return AddonDomainHosting(cpanel)


@dataclass(slots=True)
class Container:
    settings: Settings
    db: Database
    registrar: NamecheapClient
    dns: CloudflareClient
    cms: SoftaculousClient
    hosting: HostingPort
    notifier: Notifier
    sessions: SessionRegistry
    pipeline: ProvisioningPipeline
    workflow: PurchaseWorkflow
    teardown: TeardownOrchestrator
    sync: RegistrarSync

    @classmethod
    def build(cls, settings: Settings, db: Database) -> Container:
        registrar = NamecheapClient(
            api_user=settings.namecheap_api_user,
            api_key=settings.namecheap_api_key,
            client_ip=settings.namecheap_client_ip,
            sandbox=settings.namecheap_sandbox,
        )
        dns = CloudflareClient(
            api_token=settings.cloudflare_api_token,
            account_id=settings.cloudflare_account_id,
            email=settings.cloudflare_email,
            api_key=settings.cloudflare_api_key,
        )
        cms = SoftaculousClient(
            base_url=settings.cpanel_url,
            username=settings.cpanel_username,
            password=settings.cpanel_password,
            path=settings.softaculous_path,
        )
        hosting = build_hosting(settings)
        notifier = Notifier(
            ZApiClient(
                instance=settings.zapi_instance,
                token=settings.zapi_token,
                client_token=settings.zapi_client_token,
            ),
            phone=settings.notify_phone_number,
            timezone=settings.notify_timezone,
        )
        llm = LLMClient(settings)
        sessions = SessionRegistry(ttl=timedelta(seconds=settings.session_ttl_seconds))

        pipeline = ProvisioningPipeline(
            settings,
            dns=dns,
            registrar=registrar,
            hosting=hosting,
            cms=cms,
            progress=db,
            domains=db,
            events=notifier,
        )
        workflow = PurchaseWorkflow(
            settings,
            sessions=sessions,
            store=db,
            oracle=NameOracle(llm, settings),
            checker=AvailabilityChecker(
                GoDaddyClient(
                    api_key=settings.godaddy_api_key,
                    api_secret=settings.godaddy_api_secret,
                    base_url=settings.godaddy_base_url,
                )
            ),
            registrar=registrar,
            pipeline=pipeline,
            events=notifier,
        )
        teardown = TeardownOrchestrator(
            settings,
            cms=cms,
            hosting=hosting,
            dns=dns,
            store=db,
            translator=ErrorTranslator(llm, settings.error_translation_language),
            events=notifier,
        )
        return cls(
            settings=settings,
            db=db,
            registrar=registrar,
            dns=dns,
            cms=cms,
            hosting=hosting,
            notifier=notifier,
            sessions=sessions,
            pipeline=pipeline,
            workflow=workflow,
            teardown=teardown,
            sync=RegistrarSync(settings, registrar=registrar, store=db),
        )

    @contextlib.asynccontextmanager
    async def running(self, sweep_interval: float | None = None) -> AsyncIterator[Container]:
        """Keep the session sweeper running for the lifetime of the block."""
        sweeper = asyncio.create_task(self.sessions.run_sweeper(sweep_interval))
        logger.debug("Session sweeper started", ttl_s=self.sessions.ttl.total_seconds())
        try:
            yield self
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
