"""Events emitted by the workflows and consumed by the notifier."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from domainhub.models.base import utcnow


class DomainProvisioned(BaseModel):
    """Terminal outcome of post-purchase setup for one domain."""

    model_config = ConfigDict(frozen=True)

    domain_name: str
    platform: str
    success: bool
    failed_steps: list[str] = Field(default_factory=list)
    reason: str | None = None
    occurred_at: datetime = Field(default_factory=utcnow)


class PurchaseFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    reason: str
    niche: str | None = None
    occurred_at: datetime = Field(default_factory=utcnow)


class DomainDeactivated(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain_name: str
    success: bool
    steps: dict[str, bool] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=utcnow)


WorkflowEvent = DomainProvisioned | PurchaseFailed | DomainDeactivated
