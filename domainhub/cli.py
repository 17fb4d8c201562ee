"""Click CLI entry point for DomainHub."""

from __future__ import annotations

import asyncio
import json
import sys
import uuid
from typing import TYPE_CHECKING

import click

from domainhub.config import Settings
from domainhub.db import Database
from domainhub.exceptions import ConfigurationError
from domainhub.logging import configure_logging
from domainhub.models.domain import DomainStatus
from domainhub.models.purchase import Platform, PurchaseRequest

if TYPE_CHECKING:
    from domainhub.container import Container
    from domainhub.models.purchase import PurchaseResult


def _get_db(settings: Settings) -> Database:
    settings.ensure_data_dir()
    db = Database(settings.db_path)
    db.init_schema()
    return db


def _get_container(settings: Settings, db: Database) -> Container:
    from domainhub.container import Container

    return Container.build(settings, db)


async def _run_purchase(container: Container, request: PurchaseRequest) -> PurchaseResult:
    async with container.running():
        return await container.workflow.run(request)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """DomainHub: buy, provision and retire domains."""
    ctx.ensure_object(dict)
    settings = Settings()
    log_level = "DEBUG" if verbose else settings.log_level
    configure_logging(log_level=log_level, log_format=settings.log_format)
    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database tables."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        db.check_connection()
        click.echo(f"Database ready at {settings.db_path}")
    finally:
        db.close()


@cli.command()
@click.option("--niche", default=None, help="Niche the generated names should fit")
@click.option("--domain", "manual_domain", default=None, help="Buy this exact domain instead")
@click.option("--quantity", default=1, type=int, help="Number of domains to buy")
@click.option("--language", default="portuguese", help="Language of generated names")
@click.option(
    "--platform",
    type=click.Choice([p.value for p in Platform], case_sensitive=False),
    default=Platform.MANAGED_HOSTING.value,
    help="What to set up after registration",
)
@click.option("--unlimited", is_flag=True, help="Ignore the price ceiling")
@click.option("--user", "user_id", default="cli", help="Owner of the purchased domains")
@click.option("--traffic-source", default=None, help="Traffic source tag for the domain record")
@click.option("--session-id", default=None, help="Session id (generated when omitted)")
@click.pass_context
def purchase(
    ctx: click.Context,
    niche: str | None,
    manual_domain: str | None,
    quantity: int,
    language: str,
    platform: str,
    unlimited: bool,
    user_id: str,
    traffic_source: str | None,
    session_id: str | None,
) -> None:
    """Buy one domain by name, or a batch of generated ones."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        container = _get_container(settings, db)
        request = PurchaseRequest(
            session_id=session_id or uuid.uuid4().hex,
            user_id=user_id,
            quantity=quantity,
            language=language,
            niche=niche,
            manual_domain=manual_domain,
            traffic_source=traffic_source,
            platform=Platform(platform.lower()),
            unlimited=unlimited,
        )
        click.echo(f"Session {request.session_id}")
        result = asyncio.run(_run_purchase(container, request))
        click.echo(json.dumps(result.model_dump(), indent=2))
        if not result.success:
            sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.argument("session_id")
@click.pass_context
def status(ctx: click.Context, session_id: str) -> None:
    """Show the progress record of a purchase session."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        record = db.get_progress(session_id)
        if record is None:
            click.echo(f"Session {session_id} not found", err=True)
            sys.exit(1)
        click.echo(f"Step:    {record.step.value}")
        click.echo(f"Status:  {record.status.value}")
        click.echo(f"Domain:  {record.domain_name or '-'}")
        click.echo(f"Message: {record.message}")
        if record.cancel_requested and not record.is_terminal:
            click.echo("Cancellation requested")
    finally:
        db.close()


@cli.command()
@click.argument("session_id")
@click.pass_context
def cancel(ctx: click.Context, session_id: str) -> None:
    """Ask a running purchase session to stop before its next step."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        if db.get_progress(session_id) is None:
            click.echo(f"Session {session_id} not found", err=True)
            sys.exit(1)
        container = _get_container(settings, db)
        if container.workflow.cancel(session_id):
            click.echo(f"Cancellation requested for {session_id}")
        else:
            click.echo(f"Session {session_id} already finished", err=True)
            sys.exit(1)
    finally:
        db.close()


@cli.command("ls")
@click.option("--status", type=click.Choice([s.value for s in DomainStatus]), default=None)
@click.pass_context
def list_domains(ctx: click.Context, status: str | None) -> None:
    """List registered domains."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        domains = db.list_domains(DomainStatus(status) if status else None)
        if not domains:
            click.echo("No domains found.")
            return
        for d in domains:
            expires = d.expires_at.date().isoformat() if d.expires_at else "-"
            click.echo(
                f"  [{d.id:3d}] {d.domain_name:30s} {d.status.value:12s} "
                f"{d.platform:18s} expires {expires}"
            )
    finally:
        db.close()


@cli.command()
@click.argument("domain_name")
@click.pass_context
def detect(ctx: click.Context, domain_name: str) -> None:
    """Show which integrations a domain currently has."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        container = _get_container(settings, db)
        snapshot = asyncio.run(container.teardown.detect(domain_name))
        click.echo(json.dumps(snapshot.model_dump(), indent=2, default=str))
    finally:
        db.close()


@cli.command()
@click.argument("domain_name")
@click.option("--user", "user_id", default=None, help="Owner, when several users share the name")
@click.pass_context
def deactivate(ctx: click.Context, domain_name: str, user_id: str | None) -> None:
    """Remove a domain's CMS, hosting and DNS zone, then retire its record."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        record = db.get_domain_by_name(domain_name, user_id)
        if record is None or record.id is None:
            click.echo(f"Domain {domain_name} not found", err=True)
            sys.exit(1)
        container = _get_container(settings, db)
        result = asyncio.run(
            container.teardown.deactivate(record.id, record.domain_name, user_id=record.user_id)
        )
        for name, outcome in result.steps.items():
            mark = "--" if not outcome.executed else "OK" if outcome.success else "FAILED"
            click.echo(f"  {name:18s} {mark:7s} {outcome.message}")
        if not result.overall_success:
            sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.pass_context
def balance(ctx: click.Context) -> None:
    """Show the registrar account balance."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        container = _get_container(settings, db)
        amount = asyncio.run(container.registrar.get_balance())
        click.echo(f"Available balance: {amount}")
    finally:
        db.close()


@cli.command()
@click.option("--user", "user_id", default="cli", help="Owner recorded on imported domains")
@click.pass_context
def sync(ctx: click.Context, user_id: str) -> None:
    """Import the registrar account's domains and refresh their status."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        container = _get_container(settings, db)
        try:
            report = asyncio.run(container.sync.sync(user_id))
        except ConfigurationError as exc:
            click.echo(str(exc), err=True)
            sys.exit(1)
        click.echo(
            f"Listed {report.listed} domain(s) in {report.pages} page(s): "
            f"{report.created} new, {report.updated} updated, "
            f"{report.skipped} skipped, {report.failed} failed"
        )
        for error in report.errors:
            click.echo(f"  {error}", err=True)
        if report.errors or report.failed:
            sys.exit(1)
    finally:
        db.close()


@cli.command()
@click.argument("domain_name")
@click.pass_context
def nameservers(ctx: click.Context, domain_name: str) -> None:
    """Show the nameservers currently set at the registrar."""
    settings = ctx.obj["settings"]
    db = _get_db(settings)
    try:
        container = _get_container(settings, db)
        info = asyncio.run(container.registrar.get_nameservers(domain_name.strip().lower()))
        source = "registrar default" if info["using_registrar_dns"] else "custom"
        click.echo(f"{info['domain']} ({source})")
        for ns in info["nameservers"]:
            click.echo(f"  {ns}")
    finally:
        db.close()


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify which external services are configured."""
    settings = ctx.obj["settings"]
    keys = {
        "Namecheap": bool(settings.namecheap_api_user and settings.namecheap_api_key),
        "GoDaddy": bool(settings.godaddy_api_key and settings.godaddy_api_secret),
        "Cloudflare": bool(
            settings.cloudflare_api_token
            or (settings.cloudflare_email and settings.cloudflare_api_key)
        ),
        "cPanel": bool(settings.cpanel_url and settings.cpanel_api_token),
        "Softaculous": bool(settings.cpanel_url and settings.cpanel_password),
        "WHM": bool(settings.whm_url and settings.whm_api_token),
        "Anthropic": bool(settings.anthropic_api_key),
        "Z-API": bool(settings.zapi_instance and settings.zapi_token),
    }
    for name, configured in keys.items():
        state = "OK" if configured else "-- not set"
        click.echo(f"  {name:16s} {state}")
    click.echo(f"  Hosting mode     {settings.hosting_mode}")
