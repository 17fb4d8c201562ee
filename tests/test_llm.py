"""Integration tests for LLMClient via PydanticAI TestModel."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from domainhub.config import Settings
from domainhub.llm import LLMClient


class _SimpleOutput(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str
    score: int


class TestLLMClientWithTestModel:
    async def test_generate_structured_output(self) -> None:
        from pydantic_ai.models.test import TestModel

        client = LLMClient(Settings(anthropic_api_key="test-key", _env_file=None))
        client._model = TestModel()  # type: ignore[assignment]

        result = await client.generate(
            prompt="Test prompt",
            response_model=_SimpleOutput,
            system="You are a test assistant.",
        )

        assert isinstance(result, _SimpleOutput)
        assert isinstance(result.score, int)

    async def test_generate_text_output(self) -> None:
        from pydantic_ai.models.test import TestModel

        client = LLMClient(Settings(anthropic_api_key="test-key", _env_file=None))
        client._model = TestModel(custom_output_text="Falha ao remover")  # type: ignore[assignment]

        result = await client.generate_text(prompt="Translate", system="Translator")

        assert result == "Falha ao remover"


class TestLLMClientSettings:
    def test_availability_follows_api_key(self) -> None:
        assert LLMClient(Settings(anthropic_api_key="k", _env_file=None)).is_available
        assert not LLMClient(Settings(anthropic_api_key="", _env_file=None)).is_available

    def test_model_settings_overrides(self) -> None:
        client = LLMClient(Settings(anthropic_api_key="test-key", _env_file=None))

        ms = client._build_model_settings(temperature=1.0, max_tokens=64)

        assert ms["temperature"] == 1.0
        assert ms["max_tokens"] == 64

    def test_model_settings_defaults_from_config(self) -> None:
        settings = Settings(
            anthropic_api_key="test-key",
            llm_temperature=0.3,
            llm_max_tokens=256,
            _env_file=None,
        )

        ms = LLMClient(settings)._build_model_settings()

        assert ms["temperature"] == 0.3
        assert ms["max_tokens"] == 256
