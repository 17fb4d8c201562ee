"""Teardown orchestrator: detect a domain's integrations and remove them.

Removal steps are independent. Each one is attempted whatever happened to
the others, and the persisted-record step always runs last; its outcome
alone decides ``TeardownResult.overall_success``.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import structlog

from domainhub.hosting import HostingAccount
from domainhub.metrics import teardown_steps_total
from domainhub.models.base import StepOutcome
from domainhub.models.domain import DomainStatus
from domainhub.models.events import DomainDeactivated
from domainhub.models.teardown import IntegrationProbe, IntegrationSnapshot, TeardownResult

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from domainhub.config import Settings
    from domainhub.protocols import (
        CmsPort,
        DnsPort,
        DomainStorePort,
        EventSink,
        HostingPort,
        TranslatorPort,
    )

logger = structlog.get_logger()


class TeardownOrchestrator:
    def __init__(
        self,
        settings: Settings,
        cms: CmsPort,
        hosting: HostingPort,
        dns: DnsPort,
        store: DomainStorePort,
        translator: TranslatorPort,
        events: EventSink,
    ) -> None:
        self.settings = settings
        self._cms = cms
        self._hosting = hosting
        self._dns = dns
        self._store = store
        self._translator = translator
        self._events = events

    # --- Detection ---

    async def _probe(
        self,
        integration: str,
        configured: bool,
        lookup: Callable[[], Awaitable[IntegrationProbe]],
    ) -> IntegrationProbe:
        if not configured:
            return IntegrationProbe(details={"configured": False})
        try:
            return await lookup()
        except Exception as exc:
            logger.warning("Integration probe failed", integration=integration, error=str(exc))
            return IntegrationProbe(details={"error": str(exc)})

    async def _find_cms(self, domain: str) -> IntegrationProbe:
        installation = await self._cms.find_installation(domain)
        if installation is None:
            return IntegrationProbe()
        return IntegrationProbe(
            exists=True, external_id=installation["insid"], details=dict(installation)
        )

    async def _find_hosting(self, domain: str) -> IntegrationProbe:
        account = await self._hosting.find(domain)
        if account is None:
            return IntegrationProbe()
        return IntegrationProbe(
            exists=True,
            external_id=account.identifier,
            details={"kind": account.kind, **account.details},
        )

    async def _find_zone(self, domain: str) -> IntegrationProbe:
        zone = await self._dns.find_zone(domain)
        if zone is None:
            return IntegrationProbe()
        return IntegrationProbe(
            exists=True,
            external_id=zone["id"],
            details={"nameservers": zone["nameservers"], "status": zone["status"]},
        )

    async def detect(self, domain_name: str) -> IntegrationSnapshot:
        """Probe CMS, hosting and DNS concurrently. Never raises."""
        domain = domain_name.strip().lower()
        cms, hosting, dns = await asyncio.gather(
            self._probe("cms", self._cms.is_available, lambda: self._find_cms(domain)),
            self._probe(
                "hosting_account", self._hosting.is_available, lambda: self._find_hosting(domain)
            ),
            self._probe("dns_zone", self._dns.is_available, lambda: self._find_zone(domain)),
        )
        snapshot = IntegrationSnapshot(
            domain_name=domain, cms=cms, hosting_account=hosting, dns_zone=dns
        )
        logger.info(
            "Integrations detected",
            domain=domain,
            cms=cms.exists,
            hosting_account=hosting.exists,
            dns_zone=dns.exists,
        )
        return snapshot

    # --- Removal steps ---

    async def _remove_cms(self, probe: IntegrationProbe) -> StepOutcome:
        if not probe.exists or not probe.external_id:
            return StepOutcome.skipped("No CMS installation found")
        try:
            await self._cms.remove_installation(probe.external_id)
        except Exception as exc:
            return StepOutcome.failed(f"CMS removal failed: {exc}")
        # The control panel needs a moment before the account can be touched.
        await asyncio.sleep(self.settings.cms_settle_delay_seconds)
        return StepOutcome.ok(f"CMS installation {probe.external_id} removed")

    async def _hosting_failure(self, reason: str) -> StepOutcome:
        return StepOutcome.failed(await self._translator.translate(reason))

    async def _remove_hosting(self, domain: str, probe: IntegrationProbe) -> StepOutcome:
        if not probe.exists or not probe.external_id:
            return StepOutcome.skipped("No hosting account found")
        account = HostingAccount(
            domain=domain,
            kind=str(probe.details.get("kind", self._hosting.kind)),
            identifier=probe.external_id,
            details={k: str(v) for k, v in probe.details.items() if k != "kind"},
        )
        try:
            await self._hosting.remove(account)
        except httpx.TimeoutException:
            # A timed-out removal may still have completed on the server.
            logger.warning("Hosting removal timed out, re-checking", domain=domain)
            await asyncio.sleep(self.settings.terminate_reprobe_delay_seconds)
            try:
                still_there = await self._hosting.find(domain)
            except Exception as exc:
                return await self._hosting_failure(
                    f"Hosting removal timed out and the re-check failed: {exc}"
                )
            if still_there is None:
                return StepOutcome.ok(f"Hosting {account.kind} {account.identifier} removed")
            return await self._hosting_failure(
                f"Hosting removal timed out and {account.identifier} still exists"
            )
        except Exception as exc:
            return await self._hosting_failure(f"Hosting removal failed: {exc}")
        return StepOutcome.ok(f"Hosting {account.kind} {account.identifier} removed")

    async def _remove_zone(self, probe: IntegrationProbe) -> StepOutcome:
        if not probe.exists or not probe.external_id:
            return StepOutcome.skipped("No DNS zone found")
        try:
            await self._dns.delete_zone(probe.external_id)
        except Exception as exc:
            return StepOutcome.failed(f"DNS zone removal failed: {exc}")
        return StepOutcome.ok(f"DNS zone {probe.external_id} deleted")

    def _retire_record(self, domain_id: int, user_id: str) -> StepOutcome:
        try:
            if not self._store.mark_deactivated(domain_id):
                return StepOutcome.failed(f"Domain {domain_id} not found")
            self._store.log_activity(
                domain_id,
                user_id,
                "deactivated",
                DomainStatus.ACTIVE.value,
                DomainStatus.DEACTIVATED.value,
            )
        except Exception as exc:
            logger.error("Domain record not deactivated", domain_id=domain_id, error=str(exc))
            return StepOutcome.failed(f"Domain record update failed: {exc}")
        return StepOutcome.ok("Domain marked as deactivated")

    async def deactivate(
        self,
        domain_id: int,
        domain_name: str,
        *,
        user_id: str = "",
        snapshot: IntegrationSnapshot | None = None,
    ) -> TeardownResult:
        """Remove every detected integration, then retire the persisted record.

        Pass the *snapshot* from an earlier :meth:`detect` to act on exactly
        what it reported; otherwise detection runs first.
        """
        domain = domain_name.strip().lower()
        if snapshot is None:
            snapshot = await self.detect(domain)
        logger.info("Deactivating domain", domain=domain, domain_id=domain_id)

        steps: dict[str, StepOutcome] = {}
        steps["cms"] = await self._remove_cms(snapshot.cms)
        steps["hosting_account"] = await self._remove_hosting(domain, snapshot.hosting_account)
        steps["dns_zone"] = await self._remove_zone(snapshot.dns_zone)
        steps["persisted_record"] = self._retire_record(domain_id, user_id)

        for name, outcome in steps.items():
            status = "skipped" if not outcome.executed else "success" if outcome.success else "error"
            teardown_steps_total.labels(step=name, status=status).inc()
            log = logger.info if outcome.success or not outcome.executed else logger.warning
            log("Teardown step", step=name, status=status, detail=outcome.message)

        result = TeardownResult(domain_id=domain_id, domain_name=domain, steps=steps)
        event = DomainDeactivated(
            domain_name=domain,
            success=result.overall_success,
            steps={name: o.success for name, o in steps.items() if o.executed},
        )
        try:
            await self._events.publish(event)
        except Exception as exc:
            logger.warning("Event publish failed", event="DomainDeactivated", error=str(exc))
        return result
