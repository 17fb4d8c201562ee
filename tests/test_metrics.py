"""Tests for Prometheus metric definitions and workflow instrumentation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prometheus_client import REGISTRY

from domainhub.metrics import (
    domains_registered_total,
    provisioning_steps_total,
    purchase_attempts_total,
    retry_attempts_total,
    sync_domains_total,
    teardown_steps_total,
)
from domainhub.models.purchase import Platform

if TYPE_CHECKING:
    from domainhub.provisioning import ProvisioningPipeline


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetricDefinitions:
    """Counter._name drops the ``_total`` suffix; exported samples carry it."""

    def test_purchase_attempts_counter(self):
        assert purchase_attempts_total._name == "domainhub_purchase_attempts"
        assert "outcome" in purchase_attempts_total._labelnames

    def test_domains_registered_counter(self):
        assert domains_registered_total._name == "domainhub_domains_registered"
        assert "platform" in domains_registered_total._labelnames

    def test_sync_counter(self):
        assert sync_domains_total._name == "domainhub_sync_domains"
        assert sync_domains_total._labelnames == ("outcome",)

    def test_step_counters(self):
        assert provisioning_steps_total._labelnames == ("step", "status")
        assert teardown_steps_total._labelnames == ("step", "status")

    def test_retry_attempts_counter(self):
        assert retry_attempts_total._name == "domainhub_retry_attempts"


class TestInstrumentation:
    async def test_provisioning_counts_step_outcomes(self, pipeline: ProvisioningPipeline):
        labels = {"step": "dns_zone", "status": "success"}
        before = _sample("domainhub_provisioning_steps_total", labels)

        await pipeline.setup("metrics.online", Platform.MANAGED_HOSTING)

        assert _sample("domainhub_provisioning_steps_total", labels) == before + 1
