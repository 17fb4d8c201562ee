"""Offline domain-name rules: syntax checks, SLD/TLD split, site titles."""

from __future__ import annotations

import re

from domainhub.exceptions import ValidationError

# Second-level registry suffixes the registrar treats as a single TLD
COMPOSITE_TLDS = ("com.br", "net.br", "org.br", "co.uk", "com.au")


def _generated_pattern(tld: str) -> re.Pattern[str]:
    return re.compile(rf"^[a-z0-9]+\.{re.escape(tld.lstrip('.'))}$", re.IGNORECASE)


def is_valid_generated_name(name: str, tld: str) -> bool:
    """True if *name* is a single alphanumeric label under *tld*."""
    return bool(_generated_pattern(tld).match(name.strip()))


def validate_manual_name(name: str, tld: str) -> str:
    """Normalize a caller-supplied name, or raise ValidationError.

    Manual names only need to look like a domain to be accepted as input,
    but the same label and suffix rules as generated names apply before a
    purchase is ever attempted.
    """
    normalized = (name or "").strip().lower()
    if not normalized or "." not in normalized:
        raise ValidationError(f"Invalid domain name: {name!r}")
    if not is_valid_generated_name(normalized, tld):
        raise ValidationError(
            f"Domain {normalized} must be letters and digits only, ending in .{tld.lstrip('.')}"
        )
    return normalized


def split_domain(name: str) -> tuple[str, str]:
    """Split ``label.tld`` into (sld, tld) the way registrars expect it."""
    for suffix in COMPOSITE_TLDS:
        if name.endswith(f".{suffix}") and len(name) > len(suffix) + 1:
            return name[: -len(suffix) - 1], suffix
    sld, _, tld = name.rpartition(".")
    if not sld or not tld:
        raise ValidationError(f"Invalid domain name: {name!r}")
    return sld, tld


def site_title(name: str) -> str:
    """``niceshop.online`` -> ``Niceshop``."""
    label = name.split(".", 1)[0]
    return label[:1].upper() + label[1:]
