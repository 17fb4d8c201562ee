"""Managed-hosting provisioning steps, in execution order.

DNS zone -> A record -> registrar nameservers -> hosting -> CMS. Later
steps read what earlier ones left in ``ctx.state``.
"""

from __future__ import annotations

import asyncio

import structlog

from domainhub.clients.softaculous import WordPressInstall
from domainhub.domain_names import site_title
from domainhub.exceptions import RegistrarError
from domainhub.models.progress import ProgressStep
from domainhub.provisioning.base import AbstractProvisioningStep, ProvisioningContext, register_step

logger = structlog.get_logger()


@register_step
class DnsZoneStep(AbstractProvisioningStep):
    name = "dns_zone"
    order = 10
    progress_step = ProgressStep.CLOUDFLARE
    description = "Creating DNS zone"

    def is_configured(self, ctx: ProvisioningContext) -> bool:
        return ctx.dns.is_available

    async def run(self, ctx: ProvisioningContext) -> str:
        zone = await ctx.dns.find_zone(ctx.domain)
        created = zone is None
        if zone is None:
            zone = await ctx.dns.add_zone(ctx.domain)
        ctx.state.zone_id = zone["id"]
        ctx.state.nameservers = list(zone["nameservers"])

        # www and SSL are conveniences; the zone itself is what later steps need.
        try:
            await ctx.dns.add_dns_record(zone["id"], "CNAME", "www", ctx.domain, proxied=True)
        except Exception as exc:
            logger.warning("www CNAME not created", domain=ctx.domain, error=str(exc))
        try:
            await ctx.dns.set_ssl_mode(zone["id"], ctx.settings.cloudflare_ssl_mode)
        except Exception as exc:
            logger.warning("SSL mode not set", domain=ctx.domain, error=str(exc))

        verb = "created" if created else "already present"
        return f"DNS zone {verb} ({', '.join(ctx.state.nameservers) or 'no nameservers'})"


@register_step
class ARecordStep(AbstractProvisioningStep):
    name = "a_record"
    order = 20
    progress_step = ProgressStep.CLOUDFLARE
    description = "Pointing domain at the hosting server"

    def is_configured(self, ctx: ProvisioningContext) -> bool:
        return ctx.dns.is_available and bool(ctx.settings.hosting_server_ip)

    def skip_reason(self, ctx: ProvisioningContext) -> str | None:
        return None if ctx.state.zone_id else "DNS zone was not created"

    async def run(self, ctx: ProvisioningContext) -> str:
        assert ctx.state.zone_id is not None
        await asyncio.sleep(ctx.settings.zone_propagation_delay_seconds)
        ip = ctx.settings.hosting_server_ip
        await ctx.dns.add_dns_record(ctx.state.zone_id, "A", ctx.domain, ip, proxied=True)
        return f"A record -> {ip}"


@register_step
class NameserversStep(AbstractProvisioningStep):
    name = "nameservers"
    order = 30
    progress_step = ProgressStep.NAMESERVERS
    description = "Switching registrar nameservers"

    def is_configured(self, ctx: ProvisioningContext) -> bool:
        return ctx.registrar.is_available

    def skip_reason(self, ctx: ProvisioningContext) -> str | None:
        return None if ctx.state.nameservers else "DNS zone has no assigned nameservers"

    async def run(self, ctx: ProvisioningContext) -> str:
        result = await ctx.registrar.set_nameservers(ctx.domain, ctx.state.nameservers)
        if not result["updated"]:
            raise RegistrarError("Registrar did not confirm the nameserver update")
        ctx.state.dns_configured = True
        return f"Nameservers set to {', '.join(ctx.state.nameservers)}"


@register_step
class HostingStep(AbstractProvisioningStep):
    name = "hosting"
    order = 40
    progress_step = ProgressStep.CPANEL
    description = "Adding domain to hosting"

    def is_configured(self, ctx: ProvisioningContext) -> bool:
        return ctx.hosting.is_available

    async def run(self, ctx: ProvisioningContext) -> str:
        existing = await ctx.hosting.find(ctx.domain)
        if existing is not None:
            ctx.state.hosting_ready = True
            return f"Already hosted ({existing.kind} {existing.identifier})"
        account = await ctx.hosting.create(ctx.domain)
        ctx.state.hosting_ready = True
        return f"Hosting created ({account.kind} {account.identifier})"


@register_step
class CmsStep(AbstractProvisioningStep):
    name = "cms"
    order = 50
    progress_step = ProgressStep.WORDPRESS
    description = "Installing WordPress"

    def is_configured(self, ctx: ProvisioningContext) -> bool:
        return ctx.cms.is_available and bool(ctx.settings.wordpress_admin_user)

    def skip_reason(self, ctx: ProvisioningContext) -> str | None:
        return None if ctx.state.hosting_ready else "Domain is not hosted yet"

    async def run(self, ctx: ProvisioningContext) -> str:
        existing = await ctx.cms.find_installation(ctx.domain)
        if existing is not None:
            return f"WordPress already installed (insid {existing['insid']})"
        settings = ctx.settings
        params: WordPressInstall = {
            "domain": ctx.domain,
            "admin_username": settings.wordpress_admin_user,
            "admin_password": settings.wordpress_admin_password,
            "admin_email": settings.wordpress_admin_email,
            "site_name": site_title(ctx.domain),
            "language": settings.wordpress_language,
        }
        insid = await ctx.cms.install_wordpress(params)
        return f"WordPress installed (insid {insid})"
