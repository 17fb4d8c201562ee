"""Post-purchase setup: runs registered provisioning steps for a new domain."""

from __future__ import annotations

import time as time_mod
from datetime import timedelta
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from domainhub.metrics import provisioning_steps_total
from domainhub.models.base import StepOutcome, utcnow
from domainhub.models.domain import DomainRecord
from domainhub.models.events import DomainProvisioned
from domainhub.models.progress import ProgressStatus, ProgressStep
from domainhub.models.purchase import Platform
from domainhub.provisioning.base import (
    AbstractProvisioningStep,
    ProvisioningContext,
    ProvisioningState,
    get_step_registry,
)

if TYPE_CHECKING:
    from domainhub.config import Settings
    from domainhub.models.domain import RegistrarDomainInfo
    from domainhub.protocols import (
        CmsPort,
        DnsPort,
        DomainStorePort,
        EventSink,
        HostingPort,
        ProgressStorePort,
        RegistrarPort,
    )

logger = structlog.get_logger()

REGISTRATION_TERM = timedelta(days=365)


class ProvisioningReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain_name: str
    platform: Platform
    steps: dict[str, StepOutcome] = Field(default_factory=dict)
    domain_id: int | None = None
    zone_id: str | None = None
    nameservers: list[str] = Field(default_factory=list)

    @property
    def failed_steps(self) -> list[str]:
        return [name for name, o in self.steps.items() if o.executed and not o.success]

    @property
    def success(self) -> bool:
        return not self.failed_steps


class ProvisioningPipeline:
    """Sets up a freshly registered domain.

    Every step is best-effort: a failure is recorded in the report, and
    later steps still run when they can. Step progress is always written as
    ``in_progress``; only the workflow writes terminal statuses. Nothing
    here raises to the caller since the registration itself already succeeded.
    """

    def __init__(
        self,
        settings: Settings,
        dns: DnsPort,
        registrar: RegistrarPort,
        hosting: HostingPort,
        cms: CmsPort,
        progress: ProgressStorePort,
        domains: DomainStorePort,
        events: EventSink,
    ) -> None:
        self.settings = settings
        self._dns = dns
        self._registrar = registrar
        self._hosting = hosting
        self._cms = cms
        self._progress = progress
        self._domains = domains
        self._events = events
        # Ensure steps are imported and registered
        import domainhub.provisioning.steps  # noqa: F401

    @staticmethod
    def steps_for(platform: Platform) -> list[AbstractProvisioningStep]:
        if platform == Platform.REGISTRATION_ONLY:
            return []
        registry = get_step_registry()
        return [registry[order] for order in sorted(registry)]

    def _write_progress(
        self, ctx: ProvisioningContext, step: ProgressStep, status: ProgressStatus, message: str
    ) -> None:
        if not ctx.session_id:
            return
        try:
            self._progress.upsert_progress(
                ctx.session_id, step, status, message, domain_name=ctx.domain
            )
        except Exception as exc:
            logger.warning("Progress write failed", step=step.value, error=str(exc))

    async def _run_step(
        self, step: AbstractProvisioningStep, ctx: ProvisioningContext
    ) -> StepOutcome:
        if not step.is_configured(ctx):
            logger.info("Provisioning step not configured, skipping", step=step.name)
            return StepOutcome.skipped(f"{step.name} not configured")
        reason = step.skip_reason(ctx)
        if reason:
            logger.info("Provisioning step skipped", step=step.name, reason=reason)
            return StepOutcome.skipped(reason)

        self._write_progress(ctx, step.progress_step, ProgressStatus.IN_PROGRESS, step.description)
        try:
            message = await step.run(ctx)
        except Exception as exc:
            logger.error("Provisioning step failed", step=step.name, error=str(exc))
            self._write_progress(
                ctx, step.progress_step, ProgressStatus.IN_PROGRESS, f"{step.name} failed: {exc}"
            )
            return StepOutcome.failed(str(exc))

        logger.info("Provisioning step done", step=step.name, detail=message)
        self._write_progress(ctx, step.progress_step, ProgressStatus.IN_PROGRESS, message)
        return StepOutcome.ok(message)

    async def _registrar_info(self, domain: str) -> RegistrarDomainInfo | None:
        if not self._registrar.is_available:
            return None
        try:
            return await self._registrar.get_info(domain)
        except Exception as exc:
            logger.warning("Registrar info lookup failed", domain=domain, error=str(exc))
            return None

    async def _persist(
        self,
        domain: str,
        platform: Platform,
        user_id: str,
        traffic_source: str | None,
        state: ProvisioningState,
    ) -> tuple[StepOutcome, int | None]:
        info = await self._registrar_info(domain)
        now = utcnow()
        registered_at = info.created_date if info and info.created_date else now
        expires_at = info.expires_date if info and info.expires_date else now + REGISTRATION_TERM
        record = DomainRecord(
            domain_name=domain,
            user_id=user_id,
            platform=platform.value,
            traffic_source=traffic_source,
            registered_at=registered_at,
            expires_at=expires_at,
            dns_configured=state.dns_configured,
            nameservers=state.nameservers,
            zone_id=state.zone_id,
            auto_renew=info.auto_renew if info else False,
            whois_guard=info.whois_guard if info else False,
        )
        try:
            saved = self._domains.upsert_domain(record)
            assert saved.id is not None
            self._domains.log_activity(
                saved.id, user_id, "created", None, f"Registered {domain} ({platform.value})"
            )
        except Exception as exc:
            logger.error("Domain record not saved", domain=domain, error=str(exc))
            return StepOutcome.failed(str(exc)), None
        return StepOutcome.ok(f"Domain record {saved.id} saved"), saved.id

    async def setup(
        self,
        domain: str,
        platform: Platform,
        *,
        session_id: str = "",
        user_id: str = "",
        traffic_source: str | None = None,
    ) -> ProvisioningReport:
        """Provision *domain*, persist its record and announce the outcome."""
        ctx = ProvisioningContext(
            domain=domain,
            settings=self.settings,
            dns=self._dns,
            registrar=self._registrar,
            hosting=self._hosting,
            cms=self._cms,
            session_id=session_id,
        )
        steps: dict[str, StepOutcome] = {}
        t0 = time_mod.monotonic()
        for step in self.steps_for(platform):
            outcome = await self._run_step(step, ctx)
            steps[step.name] = outcome
            status = "skipped" if not outcome.executed else "success" if outcome.success else "error"
            provisioning_steps_total.labels(step=step.name, status=status).inc()

        record_outcome, domain_id = await self._persist(
            domain, platform, user_id, traffic_source, ctx.state
        )
        steps["persisted_record"] = record_outcome

        report = ProvisioningReport(
            domain_name=domain,
            platform=platform,
            steps=steps,
            domain_id=domain_id,
            zone_id=ctx.state.zone_id,
            nameservers=ctx.state.nameservers,
        )
        logger.info(
            "Provisioning finished",
            domain=domain,
            platform=platform.value,
            success=report.success,
            failed=report.failed_steps,
            duration_s=round(time_mod.monotonic() - t0, 2),
        )

        failed = report.failed_steps
        event = DomainProvisioned(
            domain_name=domain,
            platform=platform.value,
            success=report.success,
            failed_steps=failed,
            reason="; ".join(steps[name].message for name in failed) or None,
        )
        try:
            await self._events.publish(event)
        except Exception as exc:
            logger.warning("Event publish failed", event="DomainProvisioned", error=str(exc))
        return report
