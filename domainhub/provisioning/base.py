"""Abstract base class for provisioning steps, step context and registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from domainhub.config import Settings
    from domainhub.models.progress import ProgressStep
    from domainhub.protocols import CmsPort, DnsPort, HostingPort, RegistrarPort

logger = structlog.get_logger()


@dataclass(slots=True)
class ProvisioningState:
    """Artifacts later steps depend on, filled in as steps succeed."""

    zone_id: str | None = None
    nameservers: list[str] = field(default_factory=list)
    dns_configured: bool = False
    hosting_ready: bool = False


@dataclass(frozen=True, slots=True)
class ProvisioningContext:
    """Bundles everything a step needs to execute."""

    domain: str
    settings: Settings
    dns: DnsPort
    registrar: RegistrarPort
    hosting: HostingPort
    cms: CmsPort
    state: ProvisioningState = field(default_factory=ProvisioningState)
    session_id: str = ""


class AbstractProvisioningStep(ABC):
    """One best-effort provisioning step.

    ``run`` returns a human-readable success message and raises on failure;
    the pipeline turns both into a StepOutcome.
    """

    name: str = ""
    order: int = -1
    progress_step: ProgressStep
    description: str = ""

    @abstractmethod
    async def run(self, ctx: ProvisioningContext) -> str: ...

    def is_configured(self, _ctx: ProvisioningContext) -> bool:
        """False when the external system this step needs has no credentials."""
        return True

    def skip_reason(self, _ctx: ProvisioningContext) -> str | None:
        """Override to skip when an earlier step did not produce what this one needs."""
        return None


# Global step registry
_step_registry: dict[int, AbstractProvisioningStep] = {}


def register_step(cls: type[AbstractProvisioningStep]) -> type[AbstractProvisioningStep]:
    """Decorator that registers a step class by its order."""
    instance = cls()
    if instance.order < 0:
        raise ValueError(f"Step {cls.__name__} must define order >= 0")
    if instance.order in _step_registry:
        existing = _step_registry[instance.order]
        raise ValueError(
            f"Step order {instance.order} already registered by {existing.__class__.__name__}"
        )
    _step_registry[instance.order] = instance
    logger.debug("Registered provisioning step", order=instance.order, step=instance.name)
    return cls


def get_step_registry() -> dict[int, AbstractProvisioningStep]:
    """Return the global step registry (order → instance)."""
    return _step_registry
