"""Re-exports all Pydantic models."""

from domainhub.models.base import StepOutcome
from domainhub.models.domain import (
    ContactProfile,
    DomainRecord,
    DomainStatus,
    RegistrarDomainInfo,
)
from domainhub.models.events import (
    DomainDeactivated,
    DomainProvisioned,
    PurchaseFailed,
    WorkflowEvent,
)
from domainhub.models.progress import (
    TERMINAL_STEPS,
    ProgressRecord,
    ProgressStatus,
    ProgressStep,
)
from domainhub.models.purchase import (
    CandidateDomain,
    Platform,
    PurchaseRequest,
    PurchaseResult,
)
from domainhub.models.teardown import (
    TEARDOWN_STEPS,
    IntegrationProbe,
    IntegrationSnapshot,
    TeardownResult,
)

__all__ = [
    "TEARDOWN_STEPS",
    "TERMINAL_STEPS",
    "CandidateDomain",
    "ContactProfile",
    "DomainDeactivated",
    "DomainProvisioned",
    "DomainRecord",
    "DomainStatus",
    "IntegrationProbe",
    "IntegrationSnapshot",
    "Platform",
    "ProgressRecord",
    "ProgressStatus",
    "ProgressStep",
    "PurchaseFailed",
    "PurchaseRequest",
    "PurchaseResult",
    "RegistrarDomainInfo",
    "StepOutcome",
    "TeardownResult",
    "WorkflowEvent",
]
