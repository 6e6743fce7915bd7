"""Tests for LLM backend implementations."""

import json

import httpx
import pytest

from sitegen.config import PipelineSettings

from .anthropic import AnthropicBackend
from .base import (
    AuthenticationError,
    ContextLengthError,
    GenerationConfig,
    InvalidResponseError,
    LLMError,
    RateLimitError,
    SpecParseError,
)
from .factory import create_backend_from_settings, create_llm_backend
from .gemini import GeminiBackend
from .model_spec import (
    DEFAULT_MODEL,
    LLMCapability,
    LLMModel,
    LLMProviderType,
    LLMSpec,
    get_llm_spec,
)
from .openai import OpenAIBackend


def gemini_reply(text: str, status: int = 200, headers=None) -> httpx.Response:
    if status != 200:
        return httpx.Response(status, text=text, headers=headers or {})
    return httpx.Response(
        200,
        json={
            "candidates": [
                {"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}
            ],
            "usageMetadata": {
                "promptTokenCount": 10,
                "candidatesTokenCount": 5,
                "totalTokenCount": 15,
            },
        },
    )


def gemini_backend(handler) -> GeminiBackend:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiBackend(api_key="test-key", http_client=client)


class TestLLMSpec:
    """Tests for LLMSpec and the model registry."""

    @pytest.mark.unit
    def test_spec_capabilities(self):
        """Capability checks use the capability set."""
        spec = LLMSpec(
            name="test",
            provider=LLMProviderType.GEMINI,
            context_window=1000,
            max_output_tokens=100,
            capabilities=frozenset({LLMCapability.JSON_MODE}),
        )
        assert spec.supports(LLMCapability.JSON_MODE)
        assert not spec.supports(LLMCapability.SEED)

    @pytest.mark.unit
    def test_default_model_is_gemini(self):
        """Gemini is the default provider."""
        assert DEFAULT_MODEL.spec.provider == LLMProviderType.GEMINI

    @pytest.mark.unit
    def test_by_name(self):
        """Models resolve by name."""
        assert LLMModel.by_name("gpt-4.1-mini") is LLMModel.GPT_4_1_MINI
        assert LLMModel.by_name("nonexistent") is None

    @pytest.mark.unit
    def test_get_llm_spec_variants(self):
        """Names, enum members and specs all resolve."""
        spec = LLMModel.CLAUDE_SONNET_4_5.spec
        assert get_llm_spec("claude-sonnet-4-5") == spec
        assert get_llm_spec(LLMModel.CLAUDE_SONNET_4_5) == spec
        assert get_llm_spec(spec) is spec
        with pytest.raises(ValueError, match="Unknown model"):
            get_llm_spec("gpt-0")

    @pytest.mark.unit
    def test_list_by_provider(self):
        """Every provider has at least one model."""
        for provider in LLMProviderType:
            assert LLMModel.list_by_provider(provider)


class TestFactory:
    """Tests for backend factories."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "model,cls",
        [
            ("gemini-2.5-flash", GeminiBackend),
            ("gpt-4.1-mini", OpenAIBackend),
            ("claude-haiku-4-5", AnthropicBackend),
        ],
    )
    def test_routes_by_provider(self, model, cls):
        """Factory returns the provider's backend class."""
        backend = create_llm_backend(model, api_key="k")
        assert isinstance(backend, cls)
        assert backend.model_name == model

    @pytest.mark.unit
    @pytest.mark.parametrize("cls", [GeminiBackend, OpenAIBackend, AnthropicBackend])
    def test_missing_key_rejected(self, cls):
        """Backends refuse to start without a key."""
        with pytest.raises(AuthenticationError):
            cls(api_key=None)

    @pytest.mark.unit
    def test_from_settings_first_available(self):
        """Without explicit choice the first keyed provider wins."""
        settings = PipelineSettings(openai_api_key="o", anthropic_api_key="a")
        backend = create_backend_from_settings(settings)
        assert backend.provider == "openai"

    @pytest.mark.unit
    def test_from_settings_explicit_provider(self):
        """LLM_PROVIDER selects that provider's default model."""
        settings = PipelineSettings(
            gemini_api_key="g", anthropic_api_key="a", llm_provider="Anthropic"
        )
        assert create_backend_from_settings(settings).name == (
            "anthropic:claude-sonnet-4-5"
        )

    @pytest.mark.unit
    def test_from_settings_explicit_model(self):
        """LLM_MODEL beats LLM_PROVIDER."""
        settings = PipelineSettings(
            gemini_api_key="g", llm_provider="openai", llm_model="gemini-2.5-pro"
        )
        assert create_backend_from_settings(settings).model_name == "gemini-2.5-pro"

    @pytest.mark.unit
    def test_from_settings_no_keys(self):
        """No credentials is an authentication error."""
        with pytest.raises(AuthenticationError):
            create_backend_from_settings(PipelineSettings())

    @pytest.mark.unit
    def test_from_settings_unknown_provider(self):
        """Unknown providers are rejected."""
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_backend_from_settings(
                PipelineSettings(gemini_api_key="g", llm_provider="mistral")
            )


class TestGeminiBackend:
    """Tests for the Gemini REST backend."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Prompt, system instruction and JSON mode are sent."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return gemini_reply('{"ok": true}')

        backend = gemini_backend(handler)
        result = await backend.generate(
            "make a site", system_prompt="be brief", config=GenerationConfig(seed=7)
        )

        assert seen["url"].endswith("/models/gemini-2.5-flash:generateContent")
        assert seen["key"] == "test-key"
        body = seen["body"]
        assert body["contents"][0]["parts"][0]["text"] == "make a site"
        assert body["systemInstruction"]["parts"][0]["text"] == "be brief"
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert body["generationConfig"]["seed"] == 7
        assert result.content == '{"ok": true}'
        assert result.finish_reason == "stop"
        assert result.usage["total_tokens"] == 15

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_rate_limit(self):
        """429 raises RateLimitError with retry-after."""
        backend = gemini_backend(
            lambda r: gemini_reply("slow down", 429, {"Retry-After": "12"})
        )
        with pytest.raises(RateLimitError) as exc_info:
            await backend.generate("x")
        assert exc_info.value.retry_after == 12.0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_auth_error(self):
        """403 raises AuthenticationError."""
        backend = gemini_backend(lambda r: gemini_reply("bad key", 403))
        with pytest.raises(AuthenticationError):
            await backend.generate("x")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_server_error_is_transient(self):
        """5xx raises a transient LLMError."""
        backend = gemini_backend(lambda r: gemini_reply("oops", 503))
        with pytest.raises(LLMError) as exc_info:
            await backend.generate("x")
        assert exc_info.value.transient
        assert exc_info.value.status_code == 503

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_context_length(self):
        """Token-limit rejections raise ContextLengthError."""
        backend = gemini_backend(
            lambda r: gemini_reply("input token count exceeds the maximum", 400)
        )
        with pytest.raises(ContextLengthError):
            await backend.generate("x")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self):
        """Transport errors raise a transient LLMError."""

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        backend = gemini_backend(handler)
        with pytest.raises(LLMError) as exc_info:
            await backend.generate("x")
        assert exc_info.value.transient

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        """Responses without candidates are invalid."""
        backend = gemini_backend(lambda r: httpx.Response(200, json={"nope": 1}))
        with pytest.raises(InvalidResponseError):
            await backend.generate("x")


class TestErrors:
    """Tests for the exception hierarchy."""

    @pytest.mark.unit
    def test_spec_parse_error_is_invalid_response(self):
        """SpecParseError is an InvalidResponseError and truncates content."""
        error = SpecParseError("bad", content="x" * 1000)
        assert isinstance(error, InvalidResponseError)
        assert len(error.content) == 500

    @pytest.mark.unit
    def test_rate_limit_is_transient(self):
        """Rate limits carry status 429 and are transient."""
        error = RateLimitError("slow", retry_after=3)
        assert error.transient
        assert error.status_code == 429
