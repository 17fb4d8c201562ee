"""LLM client wrapper using PydanticAI + Anthropic.

Async throughout: callers are the purchase and teardown workflows, which
already run inside an event loop.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from pydantic import BaseModel
from pydantic_ai.models.anthropic import AnthropicModelSettings

from domainhub.config import Settings
from domainhub.metrics import llm_tokens_total

if TYPE_CHECKING:
    from pydantic_ai.models import Model
    from pydantic_ai.usage import RunUsage

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

_DEFAULT_SYSTEM = "You are a helpful assistant."


class LLMClient:
    """Wrapper around the Anthropic API with PydanticAI for structured outputs."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self._model: Model | None = None

    @property
    def is_available(self) -> bool:
        return bool(self.settings.anthropic_api_key)

    @property
    def model(self) -> Model:
        if self._model is None:
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            provider = AnthropicProvider(api_key=self.settings.anthropic_api_key)
            self._model = AnthropicModel(self.settings.llm_model, provider=provider)
        return self._model

    def _build_model_settings(
        self,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> AnthropicModelSettings:
        return AnthropicModelSettings(
            temperature=temperature if temperature is not None else self.settings.llm_temperature,
            max_tokens=max_tokens if max_tokens is not None else self.settings.llm_max_tokens,
        )

    def _record_usage(self, output_type: str, usage: RunUsage) -> None:
        logger.info(
            "LLM response",
            model=self.settings.llm_model,
            output_type=output_type,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
        )
        model_label = self.settings.llm_model
        llm_tokens_total.labels(model=model_label, token_type="request").inc(
            usage.input_tokens or 0
        )
        llm_tokens_total.labels(model=model_label, token_type="response").inc(
            usage.output_tokens or 0
        )

    async def _run(
        self,
        prompt: str,
        output_type: type[Any],
        system: str,
        temperature: float | None,
        max_tokens: int | None,
    ) -> Any:
        from pydantic_ai import Agent

        label = getattr(output_type, "__name__", str(output_type))
        agent = Agent(self.model, output_type=output_type, system_prompt=system or _DEFAULT_SYSTEM)
        logger.debug("LLM request", model=self.settings.llm_model, output=label)
        result = await agent.run(
            prompt, model_settings=self._build_model_settings(temperature, max_tokens)
        )
        self._record_usage(label, result.usage())
        return result.output

    async def generate(
        self,
        prompt: str,
        response_model: type[T],
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> T:
        """Generate a structured response validated against *response_model*."""
        output: T = await self._run(prompt, response_model, system, temperature, max_tokens)
        return output

    async def generate_text(
        self,
        prompt: str,
        system: str = "",
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        return str(await self._run(prompt, str, system, temperature, max_tokens))
