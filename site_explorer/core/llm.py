"""OpenAI-compatible LLM client used as the reasoning oracle.

The @traced_llm_client decorator handles call instrumentation (tokens,
cost, duration).
"""

import logging
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI

from ..observability.decorators import traced_llm_client
from .config import OpenAIConfig
from .exceptions import LLMError

logger = logging.getLogger(__name__)


# LLM cost lookup table (per 1K tokens), used for cost estimation in metrics
MODEL_COSTS: dict[str, dict[str, float]] = {
    "gpt-4.1": {"input": 0.002, "output": 0.008},
    "gpt-4.1-mini": {"input": 0.0004, "output": 0.0016},
    "gpt-4.1-nano": {"input": 0.0001, "output": 0.0004},
    "gpt-4o": {"input": 0.0025, "output": 0.01},
    "gpt-4o-mini": {"input": 0.00015, "output": 0.0006},
    "gpt-4-turbo": {"input": 0.01, "output": 0.03},
    "gpt-3.5-turbo": {"input": 0.0005, "output": 0.0015},
    "o3-mini": {"input": 0.0011, "output": 0.0044},
    "o4-mini": {"input": 0.0011, "output": 0.0044},
}


def estimate_cost(model: str, tokens_input: int, tokens_output: int) -> float:
    """Estimate API cost in USD for an LLM call; unknown models cost 0."""
    costs = MODEL_COSTS.get(model, {"input": 0, "output": 0})
    return (
        (tokens_input / 1000) * costs["input"] +
        (tokens_output / 1000) * costs["output"]
    )


class ReasoningOracle(Protocol):
    """Opaque request/response reasoning capability."""

    async def complete(self, prompt: str, snapshot_context: str) -> str: ...


class LLMClient:
    """Async OpenAI-compatible chat client.

    Args:
        config: API key, model, temperature, timeout and optional base URL
        component_name: Name used in span names, e.g. "openai:oracle"

    Example:
        client = LLMClient(OpenAIConfig.from_env(), component_name="oracle")
        reply = await client.complete(system_prompt, page_context)
    """

    def __init__(self, config: OpenAIConfig, component_name: str | None = None):
        self.config = config
        self.model = config.model
        self.temperature = config.temperature
        self.component_name = component_name

        client_kwargs: dict[str, Any] = {"api_key": config.api_key, "timeout": config.timeout}
        if config.base_url:
            client_kwargs["base_url"] = config.base_url
        self.client = AsyncOpenAI(**client_kwargs)

    @traced_llm_client(provider="openai")
    async def chat(self, messages: list[dict[str, Any]], **kwargs: Any) -> dict[str, Any]:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with role/content
            **kwargs: Call-specific overrides of the request parameters

        Returns:
            Dict with content, finish_reason, model and token usage

        Raises:
            LLMError: If the API call fails
        """
        request_kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            **kwargs,
        }

        try:
            response = await self.client.chat.completions.create(**request_kwargs)
        except openai.APIStatusError as e:
            raise LLMError(str(e), provider="openai", status_code=e.status_code) from e
        except openai.OpenAIError as e:
            raise LLMError(str(e), provider="openai") from e

        choice = response.choices[0]
        result: dict[str, Any] = {
            "role": "assistant",
            "content": choice.message.content or "",
            "finish_reason": choice.finish_reason,
            "model": getattr(response, "model", None) or self.model,
        }

        if response.usage:
            result["tokens_input"] = response.usage.prompt_tokens
            result["tokens_output"] = response.usage.completion_tokens
            result["tokens_total"] = response.usage.total_tokens
            result["estimated_cost_usd"] = estimate_cost(
                self.model,
                response.usage.prompt_tokens,
                response.usage.completion_tokens,
            )

        return result

    async def complete(self, prompt: str, snapshot_context: str) -> str:
        """Ask the model with prompt as system message and page context as user message."""
        messages = [
            {"role": "system", "content": prompt},
            {"role": "user", "content": snapshot_context},
        ]
        result = await self.chat(messages)
        return result["content"]
