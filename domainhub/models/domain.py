"""Persisted domain records and registrar-facing value types."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from domainhub.models.base import utcnow


class DomainStatus(StrEnum):
    ACTIVE = "active"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"


class ContactProfile(BaseModel):
    """Registrant contact; the same set is sent for every contact role."""

    model_config = ConfigDict(frozen=True)

    first_name: str = ""
    last_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    phone: str = ""
    email: str = ""
    organization: str = ""


class RegistrarDomainInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain_name: str
    created_date: datetime | None = None
    expires_date: datetime | None = None
    status: str = ""
    whois_guard: bool = False
    auto_renew: bool = False


class DomainRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | None = None
    domain_name: str
    user_id: str = ""
    registrar: str = "namecheap"
    status: DomainStatus = DomainStatus.ACTIVE
    platform: str = ""
    traffic_source: str | None = None
    registered_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime | None = None
    dns_configured: bool = False
    nameservers: list[str] = Field(default_factory=list)
    zone_id: str | None = None
    auto_renew: bool = False
    whois_guard: bool = False
    manually_deactivated: bool = False
    deactivated_at: datetime | None = None
