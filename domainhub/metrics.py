"""Prometheus metric definitions for purchase and teardown workflows."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# --- Purchase workflow ---

purchase_attempts_total = Counter(
    "domainhub_purchase_attempts_total",
    "Candidate attempts made while filling a purchase slot",
    labelnames=["outcome"],
)

domains_registered_total = Counter(
    "domainhub_domains_registered_total",
    "Domains successfully registered",
    labelnames=["platform"],
)

purchase_duration_seconds = Histogram(
    "domainhub_purchase_duration_seconds",
    "Wall time of a purchase session",
    buckets=(1, 5, 15, 30, 60, 120, 300, 600),
)

# --- Provisioning / teardown ---

provisioning_steps_total = Counter(
    "domainhub_provisioning_steps_total",
    "Provisioning step executions",
    labelnames=["step", "status"],
)

teardown_steps_total = Counter(
    "domainhub_teardown_steps_total",
    "Teardown step executions",
    labelnames=["step", "status"],
)

# --- Registrar sync ---

sync_domains_total = Counter(
    "domainhub_sync_domains_total",
    "Registrar domains processed by a sync run",
    labelnames=["outcome"],
)

# --- Retry ---

retry_attempts_total = Counter(
    "domainhub_retry_attempts_total",
    "Total retry attempts across external calls",
    labelnames=["fn_name"],
)

retry_exhausted_total = Counter(
    "domainhub_retry_exhausted_total",
    "Total times retries were exhausted",
    labelnames=["fn_name"],
)

# --- LLM tokens ---

llm_tokens_total = Counter(
    "domainhub_llm_tokens_total",
    "Total LLM tokens consumed",
    labelnames=["model", "token_type"],
)
