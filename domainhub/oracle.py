"""Name oracle: asks the LLM for a candidate domain under the configured TLD."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, ConfigDict, Field

from domainhub.domain_names import is_valid_generated_name
from domainhub.exceptions import ConfigurationError

if TYPE_CHECKING:
    from domainhub.config import Settings
    from domainhub.protocols import LLMPort

logger = structlog.get_logger()

LANGUAGES = {
    "portuguese": "Portuguese (Brazil)",
    "english": "English",
    "spanish": "Spanish",
    "german": "German",
    "french": "French",
}

SYSTEM_PROMPT = "You are an expert at creating short, creative and memorable domain names."


class DomainSuggestions(BaseModel):
    model_config = ConfigDict(frozen=True)

    domains: list[str] = Field(default_factory=list)


def build_prompt(niche: str, language: str, tld: str, word_count: int, diversify: bool) -> str:
    language_name = LANGUAGES.get(language.lower(), language)
    lines = [
        f"Create 1 domain name for the niche: {niche}.",
        f"Language: {language_name}.",
        f"Combine exactly {word_count} words of that language into a single label,",
        "without spaces, hyphens, accents or special characters.",
        f"The domain must end in .{tld}.",
        f'Example format: {{"domains": ["exampleword.{tld}"]}}',
    ]
    if diversify:
        lines.append(
            "Previous suggestions were already taken: be very creative and avoid "
            "obvious combinations."
        )
    return "\n".join(lines)


class NameOracle:
    """Generates one syntactically valid candidate, or None."""

    def __init__(self, llm: LLMPort, settings: Settings) -> None:
        self._llm = llm
        self._settings = settings

    async def generate(self, niche: str, language: str, diversify: bool = False) -> str | None:
        """Ask for a name; returns None when the answer fails syntax validation.

        Raises:
            ConfigurationError: no LLM credentials configured.
        """
        if not self._llm.is_available:
            raise ConfigurationError("LLM API key not configured")

        tld = self._settings.domain_tld
        suggestions = await self._llm.generate(
            build_prompt(niche, language, tld, self._settings.domain_word_count, diversify),
            DomainSuggestions,
            system=SYSTEM_PROMPT,
            temperature=(
                self._settings.llm_retry_temperature
                if diversify
                else self._settings.llm_temperature
            ),
        )
        if not suggestions.domains:
            logger.warning("Oracle returned no domains", niche=niche)
            return None

        name = suggestions.domains[0].strip().lower()
        if not is_valid_generated_name(name, tld):
            logger.warning("Oracle returned an invalid domain", domain=name, tld=tld)
            return None
        logger.info("Candidate generated", domain=name, diversify=diversify)
        return name
