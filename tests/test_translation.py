"""Tests for operator-facing error translation."""

from __future__ import annotations

from domainhub.translation import ErrorTranslator


class EchoLLM:
    def __init__(self, reply: str = "", error: Exception | None = None) -> None:
        self.is_available = True
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []

    async def generate_text(self, prompt: str, **kwargs: object) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class TestErrorTranslator:
    async def test_translates(self):
        llm = EchoLLM(reply="  Falha ao remover a conta  ")
        translator = ErrorTranslator(llm, "Portuguese")

        result = await translator.translate("Account removal failed")

        assert result == "Falha ao remover a conta"
        assert llm.prompts[0].startswith("Translate to Portuguese:")

    async def test_disabled_without_language(self):
        llm = EchoLLM(reply="x")
        translator = ErrorTranslator(llm, "")

        assert not translator.enabled
        assert await translator.translate("Account removal failed") == "Account removal failed"
        assert llm.prompts == []

    async def test_disabled_without_llm(self):
        assert await ErrorTranslator(None, "Portuguese").translate("boom") == "boom"

    async def test_llm_failure_falls_back(self):
        translator = ErrorTranslator(EchoLLM(error=RuntimeError("rate limited")), "Portuguese")

        assert await translator.translate("boom") == "boom"

    async def test_empty_answer_falls_back(self):
        translator = ErrorTranslator(EchoLLM(reply="   "), "Portuguese")

        assert await translator.translate("boom") == "boom"
