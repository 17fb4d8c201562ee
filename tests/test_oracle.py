"""Tests for the name oracle."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from domainhub.exceptions import ConfigurationError
from domainhub.llm import LLMClient
from domainhub.oracle import DomainSuggestions, NameOracle, build_prompt

if TYPE_CHECKING:
    from pydantic import BaseModel

    from domainhub.config import Settings


class ScriptedLLM:
    """Returns canned suggestions and records what it was asked."""

    def __init__(self, *answers: list[str], available: bool = True) -> None:
        self.answers = list(answers)
        self.is_available = available
        self.prompts: list[str] = []
        self.temperatures: list[float | None] = []

    async def generate(
        self,
        prompt: str,
        response_model: type[BaseModel],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> DomainSuggestions:
        self.prompts.append(prompt)
        self.temperatures.append(temperature)
        return DomainSuggestions(domains=self.answers.pop(0))

    async def generate_text(self, prompt: str, **kwargs: object) -> str:
        raise NotImplementedError


class TestBuildPrompt:
    def test_mentions_niche_language_and_tld(self):
        prompt = build_prompt("pet shop", "portuguese", "online", 3, diversify=False)

        assert "pet shop" in prompt
        assert "Portuguese (Brazil)" in prompt
        assert "exactly 3 words" in prompt
        assert ".online" in prompt
        assert "creative" not in prompt

    def test_diversify_adds_instruction(self):
        prompt = build_prompt("pet shop", "klingon", "online", 2, diversify=True)

        assert "Language: klingon." in prompt
        assert "already taken" in prompt


class TestNameOracle:
    async def test_returns_normalized_valid_name(self, settings: Settings):
        llm = ScriptedLLM([" LojaPetFeliz.Online "])

        name = await NameOracle(llm, settings).generate("pet shop", "portuguese")

        assert name == "lojapetfeliz.online"
        assert llm.temperatures == [settings.llm_temperature]

    async def test_diversify_raises_temperature(self, settings: Settings):
        llm = ScriptedLLM(["lojapet.online"])

        await NameOracle(llm, settings).generate("pet shop", "portuguese", diversify=True)

        assert llm.temperatures == [settings.llm_retry_temperature]
        assert "already taken" in llm.prompts[0]

    @pytest.mark.parametrize("answer", [[], ["loja-pet.online"], ["lojapet.com"]])
    async def test_invalid_answer_is_none(self, settings: Settings, answer: list[str]):
        name = await NameOracle(ScriptedLLM(answer), settings).generate("pets", "english")

        assert name is None

    async def test_unconfigured_llm(self, settings: Settings):
        oracle = NameOracle(ScriptedLLM(available=False), settings)

        with pytest.raises(ConfigurationError):
            await oracle.generate("pets", "english")

    async def test_with_llm_client_and_test_model(self, settings: Settings):
        from pydantic_ai.models.test import TestModel

        client = LLMClient(settings)
        client._model = TestModel(  # type: ignore[assignment]
            custom_output_args={"domains": ["casadogato.online"]}
        )

        name = await NameOracle(client, settings).generate("pets", "portuguese")

        assert name == "casadogato.online"
