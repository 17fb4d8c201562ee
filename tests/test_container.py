"""Tests for wiring and the container lifetime."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from domainhub.container import Container
from domainhub.hosting import AddonDomainHosting
from domainhub.workflow import PurchaseWorkflow

if TYPE_CHECKING:
    from domainhub.config import Settings
    from domainhub.db import Database


class TestContainer:
    def test_build_wires_shared_collaborators(self, settings: Settings, db: Database):
        container = Container.build(settings, db)

        assert isinstance(container.workflow, PurchaseWorkflow)
        assert isinstance(container.hosting, AddonDomainHosting)
        assert container.pipeline.settings is settings
        assert container.sessions.ttl == timedelta(seconds=settings.session_ttl_seconds)

    async def test_running_sweeps_stale_sessions(self, settings: Settings, db: Database):
        container = Container.build(settings, db)
        container.sessions.start("stale", "u1")
        container.sessions.get("stale").started_at = datetime.now(UTC) - timedelta(days=1)

        async with container.running(sweep_interval=0.01) as running:
            assert running is container
            await asyncio.sleep(0.05)
            assert "stale" not in container.sessions

    async def test_running_stops_sweeper_on_exit(self, settings: Settings, db: Database):
        container = Container.build(settings, db)

        async with container.running(sweep_interval=0.01):
            pass

        await asyncio.sleep(0)
        sweepers = [
            t
            for t in asyncio.all_tasks()
            if t is not asyncio.current_task() and "run_sweeper" in repr(t.get_coro())
        ]
        assert sweepers == []
