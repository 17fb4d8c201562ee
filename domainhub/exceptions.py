"""Error taxonomy shared by adapters and workflows."""

from __future__ import annotations


class DomainHubError(Exception):
    """Base class for all domainhub errors."""


class ValidationError(DomainHubError):
    """Input rejected offline, before any network call. Never retried."""


class ConfigurationError(DomainHubError):
    """A collaborator was asked to work without the credentials it needs."""


class ProviderError(DomainHubError):
    """An external API answered, but with an error."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code

    @property
    def is_transient(self) -> bool:
        """Rate limiting and server-side failures are worth another attempt."""
        return self.status_code == 429 or (
            self.status_code is not None and self.status_code >= 500
        )


class RegistrarError(ProviderError):
    def __init__(self, message: str, code: str = "") -> None:
        super().__init__("namecheap", message)
        self.code = code
