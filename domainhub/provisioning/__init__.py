"""Provisioning steps and the pipeline that runs them after a registration."""

from domainhub.provisioning.base import (
    AbstractProvisioningStep,
    ProvisioningContext,
    ProvisioningState,
    get_step_registry,
    register_step,
)
from domainhub.provisioning.pipeline import ProvisioningPipeline, ProvisioningReport

__all__ = [
    "AbstractProvisioningStep",
    "ProvisioningContext",
    "ProvisioningPipeline",
    "ProvisioningReport",
    "ProvisioningState",
    "get_step_registry",
    "register_step",
]
