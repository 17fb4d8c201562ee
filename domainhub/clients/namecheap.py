"""Client for the Namecheap registrar XML API.

Namecheap answers every command with an ``ApiResponse`` envelope whose
``Status`` attribute is ``OK`` or ``ERROR``; error details are free text
inside ``<Errors><Error Number="...">``. This module is the only place
that text is interpreted: purchases decode into :class:`RegistrarSuccess`
or :class:`RegistrarFailure` with a :class:`PurchaseErrorKind`.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import TYPE_CHECKING

import httpx
import structlog
from typing_extensions import TypedDict

from domainhub.domain_names import split_domain
from domainhub.exceptions import ConfigurationError, RegistrarError
from domainhub.models.domain import DomainStatus, RegistrarDomainInfo

if TYPE_CHECKING:
    from domainhub.models.domain import ContactProfile

logger = structlog.get_logger()

NC_XML_NS = "{http://api.namecheap.com/xml.response}"
LIVE_ENDPOINT = "https://api.namecheap.com/xml.response"
SANDBOX_ENDPOINT = "https://api.sandbox.namecheap.com/xml.response"

MIN_NAMESERVERS = 2
MAX_NAMESERVERS = 12
DEFAULT_PAGE_SIZE = 100

_CONTACT_ROLES = ("Registrant", "Tech", "Admin", "AuxBilling")


class PurchaseErrorKind(StrEnum):
    INVALID_DOMAIN = "invalid_domain"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RegistrarSuccess:
    domain: str
    charged: Decimal | None = None


@dataclass(frozen=True, slots=True)
class RegistrarFailure:
    kind: PurchaseErrorKind
    message: str
    code: str = ""


PurchaseOutcome = RegistrarSuccess | RegistrarFailure


class NameserverUpdate(TypedDict):
    success: bool
    domain: str
    updated: bool


class NameserverInfo(TypedDict):
    domain: str
    nameservers: list[str]
    using_registrar_dns: bool


@dataclass(frozen=True, slots=True)
class ListedDomain:
    """One row of ``namecheap.domains.getList``."""

    name: str
    status: DomainStatus
    expires: datetime | None = None
    created: datetime | None = None
    is_locked: bool = False
    auto_renew: bool = False
    whois_guard: bool = False


@dataclass(frozen=True, slots=True)
class DomainPage:
    domains: list[ListedDomain]
    current_page: int
    total_items: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return -(-self.total_items // self.page_size) if self.page_size else 0

    @property
    def has_more(self) -> bool:
        return self.current_page < self.total_pages


def classify_registrar_error(message: str) -> PurchaseErrorKind:
    """Map Namecheap's free-text error to a purchase error category.

    Known fragility: this is plain substring matching on provider wording.
    Only the two categories the workflow acts on are recognised.
    """
    lowered = message.lower()
    if "insufficient funds" in lowered:
        return PurchaseErrorKind.INSUFFICIENT_FUNDS
    if "invalid" in lowered:
        return PurchaseErrorKind.INVALID_DOMAIN
    return PurchaseErrorKind.OTHER


def _find(root: ET.Element, tag: str) -> ET.Element | None:
    return root.find(f".//{NC_XML_NS}{tag}")


def _errors(root: ET.Element) -> list[tuple[str, str]]:
    return [
        (err.attrib.get("Number", ""), (err.text or "").strip())
        for err in root.findall(f".//{NC_XML_NS}Errors/{NC_XML_NS}Error")
    ]


def _is_true(value: str | None) -> bool:
    return (value or "").strip().lower() == "true"


def _parse_date(value: str | None) -> datetime | None:
    """Namecheap dates are ``MM/DD/YYYY``."""
    if not value:
        return None
    try:
        return datetime.strptime(value.strip(), "%m/%d/%Y").replace(tzinfo=UTC)
    except ValueError:
        return None


def _find_int(root: ET.Element, tag: str, default: int) -> int:
    node = _find(root, tag)
    try:
        return int((node.text or "").strip()) if node is not None else default
    except ValueError:
        return default


def parse_envelope(xml_text: str) -> tuple[ET.Element, list[tuple[str, str]]]:
    """Parse the ``ApiResponse`` envelope; returns (root, errors)."""
    root = ET.fromstring(xml_text)
    errors = _errors(root)
    if root.attrib.get("Status", "").upper() == "ERROR" and not errors:
        errors = [("", "Unknown registrar error")]
    return root, errors


def decode_purchase(xml_text: str, domain: str) -> PurchaseOutcome:
    """Decode a ``namecheap.domains.create`` response into a tagged outcome."""
    try:
        root, errors = parse_envelope(xml_text)
    except ET.ParseError:
        return RegistrarFailure(PurchaseErrorKind.OTHER, "Malformed registrar response")
    if errors:
        code, message = errors[0]
        return RegistrarFailure(classify_registrar_error(message), message, code)

    result = _find(root, "DomainCreateResult")
    if result is None or not _is_true(result.attrib.get("Registered")):
        return RegistrarFailure(PurchaseErrorKind.OTHER, "Registrar did not confirm registration")
    charged: Decimal | None
    try:
        charged = Decimal(result.attrib.get("ChargedAmount", ""))
    except InvalidOperation:
        charged = None
    return RegistrarSuccess(domain=result.attrib.get("Domain", domain).lower(), charged=charged)


def listed_status(
    is_expired: bool, expires: datetime | None, today: date | None = None
) -> DomainStatus:
    """Expired when the registrar says so, or when the expiry day is today or earlier.

    Namecheap sometimes reports ``IsExpired="false"`` for a domain whose
    expiry date has already passed, so the date is checked as well.
    """
    if is_expired:
        return DomainStatus.EXPIRED
    if expires is not None and expires.date() <= (today or datetime.now(UTC).date()):
        return DomainStatus.EXPIRED
    return DomainStatus.ACTIVE


def decode_domain_list(xml_text: str, today: date | None = None) -> DomainPage:
    """Decode a ``namecheap.domains.getList`` page.

    Raises:
        RegistrarError: the registrar answered with an error.
    """
    root, errors = parse_envelope(xml_text)
    if errors:
        code, message = errors[0]
        raise RegistrarError(message, code)

    domains = []
    for node in root.findall(f".//{NC_XML_NS}DomainGetListResult/{NC_XML_NS}Domain"):
        expires = _parse_date(node.attrib.get("Expires"))
        domains.append(
            ListedDomain(
                name=node.attrib.get("Name", "").strip().lower(),
                status=listed_status(_is_true(node.attrib.get("IsExpired")), expires, today),
                expires=expires,
                created=_parse_date(node.attrib.get("Created")),
                is_locked=_is_true(node.attrib.get("IsLocked")),
                auto_renew=_is_true(node.attrib.get("AutoRenew")),
                whois_guard=node.attrib.get("WhoisGuard", "").upper() == "ENABLED",
            )
        )

    return DomainPage(
        domains=[d for d in domains if d.name],
        current_page=_find_int(root, "CurrentPage", 1),
        total_items=_find_int(root, "TotalItems", len(domains)),
        page_size=_find_int(root, "PageSize", DEFAULT_PAGE_SIZE),
    )


class NamecheapClient:
    """Namecheap API client for purchase, nameservers, info, listing and balance."""

    def __init__(
        self,
        api_user: str = "",
        api_key: str = "",
        client_ip: str = "",
        sandbox: bool = False,
        timeout: float = 30.0,
    ) -> None:
        self.api_user = api_user
        self.api_key = api_key
        self.client_ip = client_ip
        self.endpoint = SANDBOX_ENDPOINT if sandbox else LIVE_ENDPOINT
        self.timeout = timeout

    @property
    def is_available(self) -> bool:
        return bool(self.api_user and self.api_key and self.client_ip)

    def _params(self, command: str, **extra: str) -> dict[str, str]:
        return {
            "ApiUser": self.api_user,
            "ApiKey": self.api_key,
            "UserName": self.api_user,
            "ClientIp": self.client_ip,
            "Command": command,
            **extra,
        }

    async def _call(self, command: str, timeout: float | None = None, **extra: str) -> str:
        if not self.is_available:
            raise ConfigurationError("Namecheap API credentials not configured")
        async with httpx.AsyncClient(timeout=timeout or self.timeout) as client:
            resp = await client.get(self.endpoint, params=self._params(command, **extra))
            resp.raise_for_status()
            return resp.text

    async def purchase(self, domain: str, contact: ContactProfile) -> PurchaseOutcome:
        """Register *domain* for one year with *contact* on every contact role.

        Registrar-side rejections come back as :class:`RegistrarFailure`;
        transport errors propagate as ``httpx.HTTPError``.
        """
        contact_fields = {
            "FirstName": contact.first_name,
            "LastName": contact.last_name,
            "Address1": contact.address,
            "City": contact.city,
            "StateProvince": contact.state,
            "PostalCode": contact.postal_code,
            "Country": contact.country,
            "Phone": contact.phone,
            "EmailAddress": contact.email,
            "OrganizationName": contact.organization,
        }
        params = {
            f"{role}{field}": value
            for role in _CONTACT_ROLES
            for field, value in contact_fields.items()
        }
        xml_text = await self._call(
            "namecheap.domains.create",
            timeout=60.0,
            DomainName=domain,
            Years="1",
            AddFreeWhoisguard="yes",
            WGEnabled="yes",
            **params,
        )
        outcome = decode_purchase(xml_text, domain)
        if isinstance(outcome, RegistrarFailure):
            logger.warning(
                "Registrar rejected purchase",
                domain=domain,
                kind=outcome.kind.value,
                code=outcome.code,
                error=outcome.message,
            )
        else:
            logger.info("Domain registered", domain=outcome.domain, charged=str(outcome.charged))
        return outcome

    async def get_info(self, domain: str) -> RegistrarDomainInfo | None:
        """Best-effort ``namecheap.domains.getInfo``; None on any failure."""
        try:
            xml_text = await self._call("namecheap.domains.getInfo", DomainName=domain)
            root, errors = parse_envelope(xml_text)
        except (httpx.HTTPError, ET.ParseError, ConfigurationError) as exc:
            logger.warning("Registrar info lookup failed", domain=domain, error=str(exc))
            return None
        if errors:
            logger.warning("Registrar info lookup rejected", domain=domain, error=errors[0][1])
            return None

        result = _find(root, "DomainGetInfoResult")
        created = _find(root, "CreatedDate")
        expires = _find(root, "ExpiredDate")
        whoisguard = _find(root, "Whoisguard")
        return RegistrarDomainInfo(
            domain_name=domain,
            created_date=_parse_date(created.text if created is not None else None),
            expires_date=_parse_date(expires.text if expires is not None else None),
            status=result.attrib.get("Status", "") if result is not None else "",
            whois_guard=whoisguard is not None and _is_true(whoisguard.attrib.get("Enabled")),
            auto_renew=result is not None and _is_true(result.attrib.get("AutoRenew")),
        )

    async def set_nameservers(self, domain: str, nameservers: list[str]) -> NameserverUpdate:
        """Point *domain* at custom nameservers (between 2 and 12 of them).

        Raises:
            RegistrarError: invalid nameserver list or registrar rejection.
        """
        cleaned = [ns.strip().lower() for ns in nameservers]
        if not MIN_NAMESERVERS <= len(cleaned) <= MAX_NAMESERVERS:
            raise RegistrarError(
                f"Between {MIN_NAMESERVERS} and {MAX_NAMESERVERS} nameservers are required, "
                f"got {len(cleaned)}"
            )
        if any(not ns or "." not in ns for ns in cleaned):
            raise RegistrarError(f"Invalid nameserver in {nameservers!r}")

        sld, tld = split_domain(domain)
        xml_text = await self._call(
            "namecheap.domains.dns.setCustom",
            SLD=sld,
            TLD=tld,
            Nameservers=",".join(cleaned),
        )
        root, errors = parse_envelope(xml_text)
        if errors:
            code, message = errors[0]
            raise RegistrarError(message, code)
        result = _find(root, "DomainDNSSetCustomResult")
        updated = result is not None and _is_true(result.attrib.get("Updated"))
        return {"success": updated, "domain": domain, "updated": updated}

    async def list_domains(self, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> DomainPage:
        """One page of the account's domains, with a status derived per domain.

        Raises:
            RegistrarError: registrar rejection, including rate limiting.
        """
        xml_text = await self._call(
            "namecheap.domains.getList", Page=str(page), PageSize=str(page_size)
        )
        result = decode_domain_list(xml_text)
        logger.debug(
            "Registrar domain page",
            page=result.current_page,
            total_pages=result.total_pages,
            count=len(result.domains),
        )
        return result

    async def get_nameservers(self, domain: str) -> NameserverInfo:
        """Nameservers currently assigned to *domain* (``namecheap.domains.dns.getList``)."""
        sld, tld = split_domain(domain)
        xml_text = await self._call("namecheap.domains.dns.getList", SLD=sld, TLD=tld)
        root, errors = parse_envelope(xml_text)
        if errors:
            code, message = errors[0]
            raise RegistrarError(message, code)
        result = _find(root, "DomainDNSGetListResult")
        nameservers = [
            (ns.text or "").strip().lower()
            for ns in root.findall(f".//{NC_XML_NS}Nameserver")
            if (ns.text or "").strip()
        ]
        return {
            "domain": domain,
            "nameservers": nameservers,
            "using_registrar_dns": result is not None
            and _is_true(result.attrib.get("IsUsingOurDNS")),
        }

    async def get_balance(self) -> Decimal:
        """Available account balance in the account currency."""
        xml_text = await self._call("namecheap.users.getBalances")
        root, errors = parse_envelope(xml_text)
        if errors:
            code, message = errors[0]
            raise RegistrarError(message, code)
        result = _find(root, "UserGetBalancesResult")
        if result is None:
            raise RegistrarError("Balance missing from registrar response")
        return Decimal(result.attrib.get("AvailableBalance", "0"))
