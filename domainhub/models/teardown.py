"""Integration detection and teardown results."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from domainhub.models.base import StepOutcome, utcnow

TEARDOWN_STEPS = ("cms", "hosting_account", "dns_zone", "persisted_record")


class IntegrationProbe(BaseModel):
    model_config = ConfigDict(frozen=True)

    exists: bool = False
    external_id: str | None = None
    details: dict[str, object] = Field(default_factory=dict)


class IntegrationSnapshot(BaseModel):
    """What a domain currently has wired up. Each probe is sourced independently."""

    model_config = ConfigDict(frozen=True)

    domain_name: str
    cms: IntegrationProbe = Field(default_factory=IntegrationProbe)
    hosting_account: IntegrationProbe = Field(default_factory=IntegrationProbe)
    dns_zone: IntegrationProbe = Field(default_factory=IntegrationProbe)


class TeardownResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    domain_id: int
    domain_name: str
    steps: dict[str, StepOutcome]
    completed_at: datetime = Field(default_factory=utcnow)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overall_success(self) -> bool:
        """The persisted record is the authoritative "domain retired" signal."""
        record = self.steps.get("persisted_record")
        return bool(record and record.success)
