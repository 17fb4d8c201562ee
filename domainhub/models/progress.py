"""Progress record: the durable, caller-visible state of a purchase session."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from domainhub.models.base import utcnow


class ProgressStep(StrEnum):
    GENERATING = "generating"
    CHECKING = "checking"
    PURCHASING = "purchasing"
    CLOUDFLARE = "cloudflare"
    NAMESERVERS = "nameservers"
    CPANEL = "cpanel"
    WORDPRESS = "wordpress"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELED = "canceled"


class ProgressStatus(StrEnum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"
    CANCELED = "canceled"


# "purchasing/completed" marks a registered domain mid-session, so
# terminality is keyed on the step, not the status.
TERMINAL_STEPS = frozenset({ProgressStep.COMPLETED, ProgressStep.ERROR, ProgressStep.CANCELED})


class ProgressRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    session_id: str
    step: ProgressStep
    status: ProgressStatus
    message: str = ""
    domain_name: str | None = None
    platform: str = ""
    cancel_requested: bool = False
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS
