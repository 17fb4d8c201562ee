"""Purchase requests, candidates and results."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Platform(StrEnum):
    """Target platform; decides which provisioning steps follow registration."""

    MANAGED_HOSTING = "managed_hosting"
    REGISTRATION_ONLY = "registration_only"


class PurchaseRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: str
    quantity: int = 1
    language: str = "portuguese"
    niche: str | None = None
    manual_domain: str | None = None
    traffic_source: str | None = None
    platform: Platform = Platform.MANAGED_HOSTING
    unlimited: bool = False

    @property
    def is_manual(self) -> bool:
        return bool(self.manual_domain and self.manual_domain.strip())

    @property
    def effective_quantity(self) -> int:
        return 1 if self.is_manual else self.quantity


class CandidateDomain(BaseModel):
    """An availability answer. *price* is in currency units (USD)."""

    model_config = ConfigDict(frozen=True)

    name: str
    price: Decimal
    available: bool
    definitive: bool = True


class PurchaseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    domains_registered: list[str] = Field(default_factory=list)
    total_requested: int = 0
    total_registered: int = 0
    cancelled: bool = False
    error: str | None = None
