"""Tests for integration detection and domain teardown."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from domainhub.hosting import HostingAccount
from domainhub.models.domain import DomainRecord, DomainStatus
from domainhub.models.events import DomainDeactivated
from domainhub.teardown import TeardownOrchestrator

if TYPE_CHECKING:
    from conftest import FakeCms, FakeDns, FakeHosting, RecordingSink

    from domainhub.config import Settings
    from domainhub.db import Database

DOMAIN = "oldshop.online"


class UppercaseTranslator:
    """Stand-in translator that makes translated text easy to spot."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def translate(self, message: str) -> str:
        self.calls.append(message)
        return message.upper()


@pytest.fixture()
def translator() -> UppercaseTranslator:
    return UppercaseTranslator()


@pytest.fixture()
def teardown(
    settings: Settings,
    cms: FakeCms,
    hosting: FakeHosting,
    dns: FakeDns,
    db: Database,
    translator: UppercaseTranslator,
    sink: RecordingSink,
) -> TeardownOrchestrator:
    return TeardownOrchestrator(
        settings,
        cms=cms,
        hosting=hosting,
        dns=dns,
        store=db,
        translator=translator,
        events=sink,
    )


@pytest.fixture()
def domain_id(db: Database) -> int:
    record = db.upsert_domain(DomainRecord(domain_name=DOMAIN, user_id="u1"))
    assert record.id is not None
    return record.id


async def _wire_everything(dns: FakeDns, hosting: FakeHosting, cms: FakeCms) -> None:
    await dns.add_zone(DOMAIN)
    await hosting.create(DOMAIN)
    cms.installations[DOMAIN] = {
        "insid": "26_41",
        "softdomain": DOMAIN,
        "softpath": "/home/user/public_html/oldshop.online",
        "softurl": f"https://{DOMAIN}",
    }


class TestDetect:
    async def test_detects_all_integrations(
        self, teardown: TeardownOrchestrator, dns: FakeDns, hosting: FakeHosting, cms: FakeCms
    ):
        await _wire_everything(dns, hosting, cms)

        snapshot = await teardown.detect("  OldShop.Online ")

        assert snapshot.domain_name == DOMAIN
        assert snapshot.cms.exists
        assert snapshot.cms.external_id == "26_41"
        assert snapshot.hosting_account.exists
        assert snapshot.hosting_account.external_id == "oldshop"
        assert snapshot.hosting_account.details["kind"] == "addon"
        assert snapshot.dns_zone.exists
        assert snapshot.dns_zone.external_id == f"zone-{DOMAIN}"
        assert snapshot.dns_zone.details["nameservers"] == dns.NAMESERVERS

    async def test_nothing_found(self, teardown: TeardownOrchestrator):
        snapshot = await teardown.detect(DOMAIN)

        assert not snapshot.cms.exists
        assert not snapshot.hosting_account.exists
        assert not snapshot.dns_zone.exists

    async def test_failing_probe_does_not_hide_others(
        self, teardown: TeardownOrchestrator, dns: FakeDns, hosting: FakeHosting, cms: FakeCms
    ):
        await _wire_everything(dns, hosting, cms)
        cms.fail_on.add("find")

        snapshot = await teardown.detect(DOMAIN)

        assert not snapshot.cms.exists
        assert "listing failed" in str(snapshot.cms.details["error"])
        assert snapshot.hosting_account.exists
        assert snapshot.dns_zone.exists

    async def test_unconfigured_integration_reported_absent(
        self, teardown: TeardownOrchestrator, dns: FakeDns
    ):
        await dns.add_zone(DOMAIN)
        dns.is_available = False

        snapshot = await teardown.detect(DOMAIN)

        assert not snapshot.dns_zone.exists
        assert snapshot.dns_zone.details == {"configured": False}


class TestDeactivate:
    async def test_removes_detected_integrations_in_order(
        self,
        teardown: TeardownOrchestrator,
        dns: FakeDns,
        hosting: FakeHosting,
        cms: FakeCms,
        db: Database,
        domain_id: int,
    ):
        await _wire_everything(dns, hosting, cms)

        result = await teardown.deactivate(domain_id, DOMAIN, user_id="u1")

        assert list(result.steps) == ["cms", "hosting_account", "dns_zone", "persisted_record"]
        assert all(o.executed and o.success for o in result.steps.values())
        assert result.overall_success
        assert cms.removed == ["26_41"]
        assert [a.identifier for a in hosting.removed] == ["oldshop"]
        assert dns.deleted == [f"zone-{DOMAIN}"]

        record = db.get_domain(domain_id)
        assert record is not None
        assert record.status == DomainStatus.DEACTIVATED
        assert record.manually_deactivated
        assert record.deactivated_at is not None
        activity = db.get_activity(domain_id)
        assert activity[-1]["action"] == "deactivated"
        assert activity[-1]["old_value"] == "active"
        assert activity[-1]["new_value"] == "deactivated"

    async def test_snapshot_decides_which_steps_execute(
        self,
        teardown: TeardownOrchestrator,
        dns: FakeDns,
        hosting: FakeHosting,
        cms: FakeCms,
        domain_id: int,
    ):
        await dns.add_zone(DOMAIN)
        snapshot = await teardown.detect(DOMAIN)

        result = await teardown.deactivate(domain_id, DOMAIN, snapshot=snapshot)

        executed = [name for name, o in result.steps.items() if o.executed]
        assert executed == ["dns_zone", "persisted_record"]
        assert result.steps["cms"].message == "No CMS installation found"
        assert hosting.removed == []
        assert cms.removed == []

    async def test_removal_failures_do_not_block_record(
        self,
        teardown: TeardownOrchestrator,
        dns: FakeDns,
        hosting: FakeHosting,
        cms: FakeCms,
        db: Database,
        domain_id: int,
    ):
        await _wire_everything(dns, hosting, cms)
        cms.fail_on.add("remove")
        hosting.fail_on.add("remove")
        dns.fail_on.add("delete_zone")

        result = await teardown.deactivate(domain_id, DOMAIN)

        assert not result.steps["cms"].success
        assert not result.steps["hosting_account"].success
        assert not result.steps["dns_zone"].success
        assert result.steps["persisted_record"].success
        assert result.overall_success
        record = db.get_domain(domain_id)
        assert record is not None
        assert record.status == DomainStatus.DEACTIVATED

    async def test_unknown_domain_id_fails_overall(
        self, teardown: TeardownOrchestrator, dns: FakeDns
    ):
        await dns.add_zone(DOMAIN)

        result = await teardown.deactivate(9999, DOMAIN)

        assert result.steps["dns_zone"].success
        assert not result.steps["persisted_record"].success
        assert "9999 not found" in result.steps["persisted_record"].message
        assert not result.overall_success

    async def test_hosting_failure_is_translated(
        self,
        teardown: TeardownOrchestrator,
        hosting: FakeHosting,
        translator: UppercaseTranslator,
        domain_id: int,
    ):
        await hosting.create(DOMAIN)
        hosting.fail_on.add("remove")

        result = await teardown.deactivate(domain_id, DOMAIN)

        assert translator.calls == ["Hosting removal failed: cpanel: removal refused"]
        assert result.steps["hosting_account"].message == (
            "HOSTING REMOVAL FAILED: CPANEL: REMOVAL REFUSED"
        )

    async def test_timed_out_removal_that_completed_is_success(
        self, teardown: TeardownOrchestrator, hosting: FakeHosting, domain_id: int
    ):
        await hosting.create(DOMAIN)
        hosting.timeout_on_remove = True
        hosting.remove_despite_timeout = True

        result = await teardown.deactivate(domain_id, DOMAIN)

        assert result.steps["hosting_account"].success
        assert DOMAIN not in hosting.accounts

    async def test_timed_out_removal_that_left_account_fails(
        self,
        teardown: TeardownOrchestrator,
        hosting: FakeHosting,
        translator: UppercaseTranslator,
        domain_id: int,
    ):
        await hosting.create(DOMAIN)
        hosting.timeout_on_remove = True

        result = await teardown.deactivate(domain_id, DOMAIN)

        outcome = result.steps["hosting_account"]
        assert outcome.executed
        assert not outcome.success
        assert "still exists" in translator.calls[0]
        assert result.overall_success

    async def test_reconstructs_account_from_probe(
        self, teardown: TeardownOrchestrator, hosting: FakeHosting, domain_id: int
    ):
        hosting.accounts[DOMAIN] = HostingAccount(
            domain=DOMAIN, kind="addon", identifier="oldshop.main.example", details={"dir": "/x"}
        )

        await teardown.deactivate(domain_id, DOMAIN)

        removed = hosting.removed[0]
        assert removed.identifier == "oldshop.main.example"
        assert removed.kind == "addon"
        assert removed.details == {"dir": "/x"}

    async def test_publishes_executed_steps(
        self,
        teardown: TeardownOrchestrator,
        dns: FakeDns,
        sink: RecordingSink,
        domain_id: int,
    ):
        await dns.add_zone(DOMAIN)

        await teardown.deactivate(domain_id, DOMAIN)

        event = sink.events[0]
        assert isinstance(event, DomainDeactivated)
        assert event.success
        assert event.steps == {"dns_zone": True, "persisted_record": True}
