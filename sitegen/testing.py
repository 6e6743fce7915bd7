"""Test doubles: a mock LLM backend and fake upstream image APIs.

Used by the pytest fixtures in the root conftest.py and imported directly
by tests that need custom responses.
"""

from __future__ import annotations

import base64
import json
from typing import Any

import httpx

from sitegen.llm.backend.base import GenerationConfig, GenerationResult, LLMBackend

# =============================================================================
# Canned LLM responses
# =============================================================================

SWEET_HAVEN_SPEC: dict[str, Any] = {
    "primaryColor": "#FF6B35",
    "secondaryColor": "#3A0CA3",
    "accentColor": "#F7C548",
    "heroTitle": "Sweet Haven Bakery",
    "heroSubtitle": "Fresh bread and pastries baked every morning",
    "sections": ["Home", "About", "Menu", "Contact"],
    "features": [
        "Sourdough",
        "Custom Cakes",
        "Pastries",
        "Catering",
        "Gluten-free Options",
        "Coffee Bar",
    ],
    "designStyle": "Warm rustic",
    "fullDescription": "A warm, inviting bakery site with rustic textures.",
    "imagePrompts": {
        "hero": "Golden morning light over a rustic bakery counter piled with loaves",
        "feature1": "Close-up of a crusty sourdough loaf on a floured wooden board",
        "feature2": "Elegant tiered wedding cake with fresh flowers, soft studio light",
        "feature3": "Flaky croissants cooling on a rack in a bright bakery kitchen",
    },
}

SWEET_HAVEN_PROMPTS: dict[str, str] = {
    "hero": "Wide shot of a cozy artisan bakery at sunrise, warm golden light "
    "spilling across shelves of fresh bread, inviting atmosphere",
    "feature1": "Macro photograph of sourdough crust with flour dusting, soft side "
    "lighting on a dark wooden table, rustic mood",
    "feature2": "Baker's hands shaping dough on a marble counter, natural window "
    "light, shallow depth of field, craftsmanship",
    "feature3": "Display case of colorful pastries and tarts, bright even lighting, "
    "cheerful and appetizing composition",
}


def _kind_of(prompt: str) -> str:
    lowered = prompt.lower()
    if "website design specification" in lowered:
        return "design"
    if "art director" in lowered:
        return "prompts"
    if "search terms" in lowered:
        return "search"
    return "other"


class MockLLMBackend(LLMBackend):
    """Async LLM backend returning canned responses by prompt kind.

    Responses are keyed by "design", "prompts" and "search". A value may
    be a string, an exception instance (raised), or a list consumed in
    order with the last entry repeated.
    """

    def __init__(self, responses: dict[str, Any] | None = None):
        self.responses: dict[str, Any] = {
            "design": json.dumps(SWEET_HAVEN_SPEC),
            "prompts": json.dumps(SWEET_HAVEN_PROMPTS),
            "search": "artisan bread",
        }
        if responses:
            self.responses.update(responses)
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    @property
    def model_name(self) -> str:
        return "mock-model-v1"

    @property
    def provider(self) -> str:
        return "mock"

    @property
    def supports_json_mode(self) -> bool:
        return True

    @property
    def context_window(self) -> int:
        return 4096

    def calls_of(self, kind: str) -> int:
        return sum(1 for k, _ in self.calls if k == kind)

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        config: GenerationConfig | None = None,
    ) -> GenerationResult:
        kind = _kind_of(f"{system_prompt or ''}\n{prompt}")
        self.calls.append((kind, prompt))
        response = self.responses.get(kind, "{}")
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, BaseException):
            raise response
        return GenerationResult(
            content=response,
            finish_reason="stop",
            model=self.model_name,
            usage={"total_tokens": 100},
        )

    async def aclose(self) -> None:
        self.closed = True


# =============================================================================
# Fake upstream image APIs
# =============================================================================

IMAGEN_HOST = "generativelanguage.googleapis.com"
HF_HOST = "api-inference.huggingface.co"
UNSPLASH_HOSTS = ("api.unsplash.com", "source.unsplash.com", "images.unsplash.com")


def fake_png(seed: str, size: int = 4096) -> bytes:
    """Deterministic PNG-looking body, distinct per seed."""
    header = b"\x89PNG\r\n\x1a\n" + seed.encode()
    return header + b"\x00" * max(0, size - len(header))


class FakeUpstream:
    """Routes requests to fake provider behaviour by host.

    Modes per provider ("imagen", "huggingface", "unsplash"):
        ok: Healthy responses
        fail: HTTP 503
        ratelimit: HTTP 429 with Retry-After: 0
        tiny: HTTP 200 with a degenerate body
        denied: HTTP 403
    """

    def __init__(self, **modes: str):
        self.modes = {"imagen": "ok", "huggingface": "ok", "unsplash": "ok"}
        self.modes.update(modes)
        self.requests: list[httpx.Request] = []

    def count(self, provider: str) -> int:
        hosts = {
            "imagen": (IMAGEN_HOST,),
            "huggingface": (HF_HOST,),
            "unsplash": UNSPLASH_HOSTS,
        }[provider]
        return sum(1 for r in self.requests if r.url.host in hosts)

    def _failure(self, mode: str) -> httpx.Response | None:
        if mode == "fail":
            return httpx.Response(503, text="unavailable")
        if mode == "ratelimit":
            return httpx.Response(429, headers={"Retry-After": "0"})
        if mode == "denied":
            return httpx.Response(403, text="forbidden")
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host

        if host == IMAGEN_HOST:
            mode = self.modes["imagen"]
            failure = self._failure(mode)
            if failure is not None:
                return failure
            prompt = json.loads(request.content)["instances"][0]["prompt"]
            body = fake_png(prompt, 64 if mode == "tiny" else 4096)
            encoded = base64.b64encode(body).decode()
            return httpx.Response(
                200, json={"predictions": [{"bytesBase64Encoded": encoded}]}
            )

        if host == HF_HOST:
            mode = self.modes["huggingface"]
            failure = self._failure(mode)
            if failure is not None:
                return failure
            prompt = json.loads(request.content)["inputs"]
            body = fake_png(prompt, 64 if mode == "tiny" else 4096)
            return httpx.Response(
                200, content=body, headers={"content-type": "image/png"}
            )

        if host in UNSPLASH_HOSTS:
            failure = self._failure(self.modes["unsplash"])
            if failure is not None:
                return failure
            if host == "api.unsplash.com":
                query = request.url.params.get("query", "")
                raw = (
                    f"https://images.unsplash.com/photo-{abs(hash(query)) % 10**8}"
                    "?ixid=fake&ixlib=rb-4.0.3"
                )
                return httpx.Response(200, json={"results": [{"urls": {"raw": raw}}]})
            return httpx.Response(200)

        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


async def no_sleep(delay: float) -> None:
    """Sleep replacement that returns immediately."""
    return None
