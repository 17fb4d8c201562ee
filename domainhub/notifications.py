"""Notifier: turns workflow events into WhatsApp messages.

Without a configured gateway or recipient the message is only logged.
Delivery failures are logged and never reach the workflow.
"""

from __future__ import annotations

from datetime import datetime
from functools import singledispatchmethod
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from domainhub.models.events import DomainDeactivated, DomainProvisioned, PurchaseFailed

if TYPE_CHECKING:
    from domainhub.clients.zapi import ZApiClient
    from domainhub.models.events import WorkflowEvent

logger = structlog.get_logger()


def _local_time(moment: datetime, timezone: str) -> str:
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return moment.strftime("%d/%m/%Y %H:%M UTC")
    return moment.astimezone(tz).strftime("%d/%m/%Y %H:%M")


class Notifier:
    def __init__(
        self,
        client: ZApiClient | None = None,
        phone: str = "",
        timezone: str = "UTC",
    ) -> None:
        self._client = client
        self._phone = phone
        self._timezone = timezone

    @property
    def is_available(self) -> bool:
        return bool(self._client and self._client.is_available and self._phone)

    @singledispatchmethod
    def render(self, event: WorkflowEvent) -> str:
        raise TypeError(f"Unsupported event: {type(event).__name__}")

    @render.register
    def _(self, event: DomainProvisioned) -> str:
        when = _local_time(event.occurred_at, self._timezone)
        if event.success:
            return (
                f"✅ Domain ready: {event.domain_name}\n"
                f"Platform: {event.platform}\n"
                f"Time: {when}"
            )
        failed = ", ".join(event.failed_steps) or "unknown"
        return (
            f"⚠️ Domain {event.domain_name} registered with setup failures\n"
            f"Failed steps: {failed}\n"
            f"Reason: {event.reason or 'not reported'}\n"
            f"Time: {when}"
        )

    @render.register
    def _(self, event: PurchaseFailed) -> str:
        niche = f"\nNiche: {event.niche}" if event.niche else ""
        return (
            f"❌ Domain purchase failed\n"
            f"Session: {event.session_id}{niche}\n"
            f"Reason: {event.reason}\n"
            f"Time: {_local_time(event.occurred_at, self._timezone)}"
        )

    @render.register
    def _(self, event: DomainDeactivated) -> str:
        steps = "\n".join(
            f"  {'✅' if ok else '❌'} {name}" for name, ok in event.steps.items()
        )
        headline = "🗑️ Domain deactivated" if event.success else "❌ Domain deactivation failed"
        return (
            f"{headline}: {event.domain_name}\n{steps}\n"
            f"Time: {_local_time(event.occurred_at, self._timezone)}"
        )

    async def publish(self, event: WorkflowEvent) -> None:
        message = self.render(event)
        if not self.is_available or self._client is None:
            logger.info("Notification (not sent)", event=type(event).__name__, message=message)
            return
        try:
            message_id = await self._client.send_text(self._phone, message)
        except Exception as exc:
            logger.warning(
                "Notification delivery failed", event=type(event).__name__, error=str(exc)
            )
            return
        logger.info("Notification sent", event=type(event).__name__, message_id=message_id)
