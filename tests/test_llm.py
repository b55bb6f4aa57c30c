"""Tests for LLM client module."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from site_explorer.core.config import OpenAIConfig
from site_explorer.core.exceptions import LLMError
from site_explorer.core.llm import MODEL_COSTS, LLMClient, estimate_cost


class TestEstimateCost:
    """Tests for estimate_cost function."""

    def test_known_model(self):
        """Test cost estimation for known model."""
        cost = estimate_cost("gpt-4o", tokens_input=1000, tokens_output=500)
        expected = (1000 / 1000) * 0.0025 + (500 / 1000) * 0.01
        assert cost == pytest.approx(expected)

    def test_mini_model_cheaper(self):
        """Test mini model is cheaper than full model."""
        full_cost = estimate_cost("gpt-4o", tokens_input=1000, tokens_output=500)
        mini_cost = estimate_cost("gpt-4o-mini", tokens_input=1000, tokens_output=500)
        assert mini_cost < full_cost

    def test_unknown_model_zero_cost(self):
        """Test unknown model returns zero cost."""
        assert estimate_cost("unknown-model", tokens_input=1000, tokens_output=500) == 0.0


class TestModelCosts:
    """Tests for MODEL_COSTS constant."""

    def test_model_costs_all_have_input_output(self):
        """Test all model costs have input and output keys."""
        for model, costs in MODEL_COSTS.items():
            assert "input" in costs, f"{model} missing input cost"
            assert "output" in costs, f"{model} missing output cost"


def _response(content: str) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason="stop")],
        model="gpt-4o",
        usage=SimpleNamespace(prompt_tokens=100, completion_tokens=20, total_tokens=120),
    )


@pytest.fixture
def client():
    llm = LLMClient(OpenAIConfig(api_key="sk-test"), component_name="oracle")
    llm.client = MagicMock()
    llm.client.chat.completions.create = AsyncMock(return_value=_response('{"action": "complete"}'))
    return llm


class TestLLMClient:
    """Tests for LLMClient with a mocked OpenAI SDK."""

    @pytest.mark.asyncio
    async def test_chat_returns_content_and_usage(self, client):
        result = await client.chat([{"role": "user", "content": "hi"}])
        assert result["content"] == '{"action": "complete"}'
        assert result["tokens_total"] == 120
        assert result["estimated_cost_usd"] == pytest.approx(estimate_cost("gpt-4o", 100, 20))

    @pytest.mark.asyncio
    async def test_complete_sends_prompt_as_system_message(self, client):
        """Test prompt and page context map to system and user messages."""
        reply = await client.complete("system prompt", "page context")

        assert reply == '{"action": "complete"}'
        messages = client.client.chat.completions.create.call_args.kwargs["messages"]
        assert messages == [
            {"role": "system", "content": "system prompt"},
            {"role": "user", "content": "page context"},
        ]

    @pytest.mark.asyncio
    async def test_api_error_wrapped(self, client):
        """Test SDK errors surface as LLMError."""
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        client.client.chat.completions.create = AsyncMock(side_effect=openai.APIConnectionError(request=request))

        with pytest.raises(LLMError) as exc_info:
            await client.complete("p", "c")
        assert exc_info.value.provider == "openai"
