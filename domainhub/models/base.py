"""Shared value types for multi-step operations."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict


def utcnow() -> datetime:
    return datetime.now(UTC)


class StepOutcome(BaseModel):
    """Result of one best-effort step.

    ``executed=False`` means the step had nothing to act on (integration
    absent, or its system not configured); it is not a failure.
    """

    model_config = ConfigDict(frozen=True)

    executed: bool
    success: bool
    message: str = ""

    @classmethod
    def skipped(cls, message: str) -> StepOutcome:
        return cls(executed=False, success=False, message=message)

    @classmethod
    def ok(cls, message: str) -> StepOutcome:
        return cls(executed=True, success=True, message=message)

    @classmethod
    def failed(cls, message: str) -> StepOutcome:
        return cls(executed=True, success=False, message=message)
