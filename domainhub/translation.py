"""Translate provider failure reasons for operators, falling back to the original text."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from domainhub.protocols import LLMPort

logger = structlog.get_logger()

SYSTEM_PROMPT = (
    "You translate technical hosting control panel error messages. "
    "Answer with the translated message only, keeping it short and plain."
)


class ErrorTranslator:
    def __init__(self, llm: LLMPort | None, language: str = "") -> None:
        self._llm = llm
        self._language = language

    @property
    def enabled(self) -> bool:
        return bool(self._language and self._llm is not None and self._llm.is_available)

    async def translate(self, message: str) -> str:
        """Never raises; returns *message* unchanged when translation is unavailable."""
        llm = self._llm
        if not message or llm is None or not self.enabled:
            return message
        try:
            translated = await llm.generate_text(
                f"Translate to {self._language}:\n\n{message}",
                system=SYSTEM_PROMPT,
                temperature=0.0,
                max_tokens=200,
            )
        except Exception as exc:
            logger.warning("Error translation failed", error=str(exc))
            return message
        return translated.strip() or message
