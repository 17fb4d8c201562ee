"""Purchase workflow: generate -> check -> purchase -> provision, per requested domain.

One ``run`` drives one session. Progress is written to the store after
every transition, and cancellation is polled at the start of every slot,
before every attempt and immediately before the registrar purchase call.
"""

from __future__ import annotations

import asyncio
import time as time_mod
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from domainhub.clients.namecheap import PurchaseErrorKind, RegistrarFailure
from domainhub.domain_names import validate_manual_name
from domainhub.exceptions import ConfigurationError, ValidationError
from domainhub.logging import bind_session, unbind_session
from domainhub.metrics import (
    domains_registered_total,
    purchase_attempts_total,
    purchase_duration_seconds,
)
from domainhub.models.events import PurchaseFailed
from domainhub.models.progress import ProgressStatus, ProgressStep
from domainhub.models.purchase import PurchaseRequest, PurchaseResult
from domainhub.retry import RetryPolicy

if TYPE_CHECKING:
    from domainhub.config import Settings
    from domainhub.protocols import (
        AvailabilityPort,
        EventSink,
        NameOraclePort,
        ProgressStorePort,
        RegistrarPort,
    )
    from domainhub.provisioning.pipeline import ProvisioningPipeline
    from domainhub.sessions import SessionRegistry

logger = structlog.get_logger()


class PurchaseCancelled(Exception):
    """Raised internally when a cancellation checkpoint trips."""


class BatchAborted(Exception):
    """Raised internally when no further slot of the batch may be attempted."""


@dataclass(frozen=True, slots=True)
class _Miss:
    """An attempt that did not register a domain."""

    reason: str
    backoff: bool = True


class PurchaseWorkflow:
    def __init__(
        self,
        settings: Settings,
        sessions: SessionRegistry,
        store: ProgressStorePort,
        oracle: NameOraclePort,
        checker: AvailabilityPort,
        registrar: RegistrarPort,
        pipeline: ProvisioningPipeline,
        events: EventSink,
    ) -> None:
        self.settings = settings
        self._sessions = sessions
        self._store = store
        self._oracle = oracle
        self._checker = checker
        self._registrar = registrar
        self._pipeline = pipeline
        self._events = events

    # --- Cancellation ---

    def cancel(self, session_id: str) -> bool:
        """Request cancellation. True if a running or not yet finished session was flagged."""
        flagged = self._sessions.cancel(session_id)
        try:
            durable = self._store.request_cancel(session_id)
        except Exception as exc:
            logger.warning("Durable cancel marker not written", session_id=session_id, error=str(exc))
            durable = False
        logger.info("Cancellation requested", session_id=session_id, in_memory=flagged)
        return flagged or durable

    def _is_cancelled(self, session_id: str) -> bool:
        if self._sessions.is_cancelled(session_id):
            return True
        try:
            return self._store.is_cancel_requested(session_id)
        except Exception as exc:
            logger.warning("Cancel marker lookup failed", error=str(exc))
            return False

    def _checkpoint(self, session_id: str) -> None:
        if self._is_cancelled(session_id):
            raise PurchaseCancelled(session_id)

    # --- Progress ---

    def _progress(
        self,
        session_id: str,
        step: ProgressStep,
        status: ProgressStatus,
        message: str,
        domain_name: str | None = None,
        platform: str = "",
    ) -> None:
        try:
            self._store.upsert_progress(
                session_id, step, status, message, domain_name=domain_name, platform=platform
            )
        except Exception as exc:
            logger.warning("Progress write failed", step=step.value, error=str(exc))

    # --- Attempts ---

    def _slot_policy(self, request: PurchaseRequest) -> RetryPolicy:
        # A manual name is either purchasable now or not: one attempt.
        return RetryPolicy(
            max_attempts=1 if request.is_manual else self.settings.max_purchase_attempts,
            base_delay=self.settings.retry_delay_seconds,
            backoff=1.0,
            name="purchase_slot",
        )

    async def _candidate(self, request: PurchaseRequest, attempt: int) -> str | None:
        if request.is_manual:
            assert request.manual_domain is not None
            return validate_manual_name(request.manual_domain, self.settings.domain_tld)
        assert request.niche is not None
        self._progress(
            request.session_id,
            ProgressStep.GENERATING,
            ProgressStatus.IN_PROGRESS,
            f"Generating domain name (attempt {attempt})",
        )
        return await self._oracle.generate(request.niche, request.language, diversify=attempt > 1)

    async def _attempt(self, request: PurchaseRequest, attempt: int) -> str | _Miss:
        """Try one candidate. Returns the registered name or why it was not."""
        sid = request.session_id
        name = await self._candidate(request, attempt)
        if name is None:
            purchase_attempts_total.labels(outcome="invalid_name").inc()
            return _Miss("Generated name failed validation", backoff=False)

        if not request.is_manual:
            self._progress(
                sid, ProgressStep.CHECKING, ProgressStatus.IN_PROGRESS, f"Checking {name}", name
            )
        candidate = await self._checker.check(name)
        if not candidate.available:
            purchase_attempts_total.labels(outcome="unavailable").inc()
            return _Miss(f"Domain {name} is not available")
        ceiling = self.settings.price_ceiling_usd
        if not request.unlimited and candidate.price > ceiling:
            purchase_attempts_total.labels(outcome="over_price").inc()
            return _Miss(f"Domain {name} costs ${candidate.price}, above the ${ceiling} ceiling")

        self._checkpoint(sid)
        outcome = await self._registrar.purchase(name, self.settings.contact_profile())
        if isinstance(outcome, RegistrarFailure):
            if outcome.kind == PurchaseErrorKind.INSUFFICIENT_FUNDS:
                purchase_attempts_total.labels(outcome="insufficient_funds").inc()
                raise BatchAborted(f"Insufficient funds: {outcome.message}")
            purchase_attempts_total.labels(outcome="rejected").inc()
            return _Miss(
                f"Registrar rejected {name}: {outcome.message}",
                backoff=outcome.kind != PurchaseErrorKind.INVALID_DOMAIN,
            )
        purchase_attempts_total.labels(outcome="registered").inc()
        return outcome.domain

    async def _fill_slot(self, request: PurchaseRequest, slot: int) -> tuple[str | None, str]:
        """Run attempts for one slot. Returns (registered name or None, last failure reason)."""
        policy = self._slot_policy(request)
        reason = ""
        for attempt in range(1, policy.max_attempts + 1):
            self._checkpoint(request.session_id)
            try:
                result = await self._attempt(request, attempt)
            except (PurchaseCancelled, BatchAborted):
                raise
            except ConfigurationError as exc:
                raise BatchAborted(str(exc)) from exc
            except Exception as exc:
                purchase_attempts_total.labels(outcome="error").inc()
                result = _Miss(str(exc) or type(exc).__name__)

            if isinstance(result, str):
                return result, ""
            reason = result.reason
            logger.info(
                "Attempt failed",
                slot=slot,
                attempt=attempt,
                max_attempts=policy.max_attempts,
                reason=reason,
            )
            if result.backoff and attempt < policy.max_attempts:
                await asyncio.sleep(policy.delay_for(attempt))
        logger.warning("Slot exhausted", slot=slot, attempts=policy.max_attempts, reason=reason)
        return None, reason

    async def _provision(self, request: PurchaseRequest, domain: str) -> None:
        structlog.contextvars.bind_contextvars(domain=domain)
        try:
            await self._pipeline.setup(
                domain,
                request.platform,
                session_id=request.session_id,
                user_id=request.user_id,
                traffic_source=request.traffic_source,
            )
        except Exception as exc:
            logger.error("Provisioning crashed", error=str(exc))
        finally:
            structlog.contextvars.unbind_contextvars("domain")

    # --- Entry point ---

    @staticmethod
    def _check_request(request: PurchaseRequest) -> None:
        if request.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if not request.is_manual and not (request.niche and request.niche.strip()):
            raise ValidationError("Either a niche or a manual domain is required")

    async def _publish_failure(self, request: PurchaseRequest, reason: str) -> None:
        try:
            await self._events.publish(
                PurchaseFailed(session_id=request.session_id, reason=reason, niche=request.niche)
            )
        except Exception as exc:
            logger.warning("Event publish failed", event="PurchaseFailed", error=str(exc))

    async def run(self, request: PurchaseRequest) -> PurchaseResult:
        """Drive one purchase session to a terminal progress record.

        Never raises for workflow outcomes: validation errors, exhausted
        slots, fund exhaustion and cancellation all come back as a
        :class:`PurchaseResult`.
        """
        sid = request.session_id
        platform = request.platform.value
        total = request.effective_quantity
        registered: list[str] = []
        bind_session(sid)
        self._sessions.start(sid, request.user_id)
        t0 = time_mod.monotonic()
        try:
            self._progress(
                sid,
                ProgressStep.GENERATING,
                ProgressStatus.IN_PROGRESS,
                f"Starting purchase of {total} domain(s)",
                platform=platform,
            )
            try:
                self._check_request(request)
                if request.is_manual:
                    assert request.manual_domain is not None
                    validate_manual_name(request.manual_domain, self.settings.domain_tld)
            except ValidationError as exc:
                logger.warning("Purchase request rejected", error=str(exc))
                self._progress(sid, ProgressStep.ERROR, ProgressStatus.ERROR, str(exc))
                await self._publish_failure(request, str(exc))
                return PurchaseResult(success=False, total_requested=total, error=str(exc))

            logger.info(
                "Purchase started",
                quantity=total,
                manual=request.is_manual,
                platform=platform,
                unlimited=request.unlimited,
            )
            last_reason = ""
            abort_reason: str | None = None
            try:
                for slot in range(1, total + 1):
                    self._checkpoint(sid)
                    domain, reason = await self._fill_slot(request, slot)
                    if domain is None:
                        last_reason = reason
                        continue
                    registered.append(domain)
                    domains_registered_total.labels(platform=platform).inc()
                    self._progress(
                        sid,
                        ProgressStep.PURCHASING,
                        ProgressStatus.COMPLETED,
                        f"Domain {domain} registered",
                        domain_name=domain,
                    )
                    logger.info("Domain purchased", domain=domain, slot=slot)
                    await self._provision(request, domain)
            except PurchaseCancelled:
                logger.info("Purchase cancelled", registered=registered)
                self._progress(
                    sid,
                    ProgressStep.CANCELED,
                    ProgressStatus.CANCELED,
                    f"Cancelled after registering {len(registered)} domain(s)",
                )
                return PurchaseResult(
                    success=bool(registered),
                    domains_registered=registered,
                    total_requested=total,
                    total_registered=len(registered),
                    cancelled=True,
                )
            except BatchAborted as exc:
                abort_reason = str(exc)
                logger.error("Purchase batch aborted", reason=abort_reason, registered=registered)

            error = abort_reason
            if registered:
                message = f"Registered {len(registered)} of {total}: {', '.join(registered)}"
                if abort_reason:
                    message = f"{message} (stopped: {abort_reason})"
                self._progress(sid, ProgressStep.COMPLETED, ProgressStatus.COMPLETED, message)
            else:
                error = abort_reason or "No domain purchased"
                if last_reason and not abort_reason:
                    error = f"{error}: {last_reason}"
                self._progress(sid, ProgressStep.ERROR, ProgressStatus.ERROR, error)
                await self._publish_failure(request, error)

            logger.info("Purchase finished", registered=registered, requested=total)
            return PurchaseResult(
                success=bool(registered),
                domains_registered=registered,
                total_requested=total,
                total_registered=len(registered),
                error=error,
            )
        finally:
            purchase_duration_seconds.observe(time_mod.monotonic() - t0)
            self._sessions.finish(sid)
            unbind_session()
