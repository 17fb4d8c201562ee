"""Mirror the registrar account's domain list into the domain store.

Pages through the registrar listing and applies each page as a batch:
new names are inserted, known ones get their status and expiry refreshed.
Domains retired by an operator are never touched, so a sync cannot bring
a deactivated domain back to ``active``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import TYPE_CHECKING

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field

from domainhub.exceptions import ConfigurationError, ProviderError
from domainhub.metrics import sync_domains_total
from domainhub.models.base import utcnow
from domainhub.models.domain import DomainRecord, DomainStatus
from domainhub.retry import RetryExhaustedError, RetryPolicy

if TYPE_CHECKING:
    from domainhub.clients.namecheap import DomainPage, ListedDomain
    from domainhub.config import Settings
    from domainhub.protocols import DomainListingPort, DomainStorePort

logger = structlog.get_logger()

_RATE_LIMIT_MARKERS = ("too many requests", "rate limit")


def is_rate_limited(exc: BaseException) -> bool:
    """Registrar throttling, reported either as HTTP 429 or as error text."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code == 429
    if isinstance(exc, ProviderError):
        if exc.status_code == 429:
            return True
        lowered = exc.message.lower()
        return any(marker in lowered for marker in _RATE_LIMIT_MARKERS)
    return False


class SyncReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    listed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    pages: int = 0
    errors: list[str] = Field(default_factory=list)
    completed_at: datetime = Field(default_factory=utcnow)


class RegistrarSync:
    def __init__(
        self,
        settings: Settings,
        registrar: DomainListingPort,
        store: DomainStorePort,
    ) -> None:
        self.settings = settings
        self._registrar = registrar
        self._store = store
        self._policy = RetryPolicy(
            max_attempts=settings.sync_rate_limit_attempts,
            base_delay=settings.sync_rate_limit_delay_seconds,
            backoff=2.0,
            retryable=is_rate_limited,
            name="registrar_list_domains",
        )

    async def _fetch_page(self, page: int) -> DomainPage:
        return await self._policy.call(
            lambda: self._registrar.list_domains(page, self.settings.sync_page_size)
        )

    def _apply_one(self, listed: ListedDomain, user_id: str) -> str:
        """Upsert one listed domain. Returns the outcome label."""
        existing = self._store.get_domain_by_name(listed.name, user_id)
        if existing is not None and (
            existing.manually_deactivated or existing.status == DomainStatus.DEACTIVATED
        ):
            logger.debug("Skipping retired domain", domain=listed.name)
            return "skipped"

        if existing is None:
            saved = self._store.upsert_domain(
                DomainRecord(
                    domain_name=listed.name,
                    user_id=user_id,
                    status=listed.status,
                    registered_at=listed.created or utcnow(),
                    expires_at=listed.expires,
                    auto_renew=listed.auto_renew,
                    whois_guard=listed.whois_guard,
                )
            )
            assert saved.id is not None
            self._store.log_activity(saved.id, user_id, "imported", None, listed.status.value)
            return "created"

        saved = self._store.upsert_domain(
            existing.model_copy(
                update={
                    "status": listed.status,
                    "expires_at": listed.expires or existing.expires_at,
                    "auto_renew": listed.auto_renew,
                    "whois_guard": listed.whois_guard,
                }
            )
        )
        if existing.status != listed.status:
            assert saved.id is not None
            self._store.log_activity(
                saved.id, user_id, "status_changed", existing.status.value, listed.status.value
            )
        return "updated"

    def apply_page(self, domains: list[ListedDomain], user_id: str = "") -> dict[str, int]:
        """Apply one batch of listed domains. A failing row does not stop the batch."""
        counts = {"created": 0, "updated": 0, "skipped": 0, "failed": 0}
        for listed in domains:
            try:
                outcome = self._apply_one(listed, user_id)
            except Exception as exc:
                logger.error("Domain sync failed", domain=listed.name, error=str(exc))
                outcome = "failed"
            counts[outcome] += 1
            sync_domains_total.labels(outcome=outcome).inc()
        return counts

    async def sync(self, user_id: str = "") -> SyncReport:
        """Walk every registrar page and apply it.

        A page that still fails after the rate-limit retries ends the run;
        pages already applied stay applied and the error is reported.
        """
        if not self._registrar.is_available:
            raise ConfigurationError("Registrar credentials not configured")

        totals = {"created": 0, "updated": 0, "skipped": 0, "failed": 0}
        errors: list[str] = []
        listed = 0
        pages = 0
        page_number = 1
        while True:
            try:
                page = await self._fetch_page(page_number)
            except Exception as exc:
                cause = exc.__cause__ if isinstance(exc, RetryExhaustedError) else exc
                logger.error("Registrar listing failed", page=page_number, error=str(cause))
                errors.append(f"page {page_number}: {cause}")
                break
            pages += 1
            listed += len(page.domains)
            for key, value in self.apply_page(page.domains, user_id).items():
                totals[key] += value
            logger.info(
                "Registrar page synced",
                page=page.current_page,
                total_pages=page.total_pages,
                count=len(page.domains),
            )
            # Stop on the requested page number; the echoed one is not trusted
            if not page.domains or page_number >= page.total_pages:
                break
            page_number += 1
            await asyncio.sleep(self.settings.sync_page_delay_seconds)

        report = SyncReport(listed=listed, pages=pages, errors=errors, **totals)
        logger.info(
            "Registrar sync finished",
            listed=report.listed,
            created=report.created,
            updated=report.updated,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report
