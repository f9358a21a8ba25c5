import asyncio
import json
import sys
from pathlib import Path

import httpx
import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from pharmabot.ai.providers.base import UnconfiguredBackend
from pharmabot.ai.providers.gemini import GeminiProvider
from pharmabot.ai.types import BackendUnavailable, GenerationOptions


def _ok(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def _generate(handler, model: str = "gemini-1.5-flash") -> str:
    async def run() -> str:
        provider = GeminiProvider("test-key", transport=httpx.MockTransport(handler))
        try:
            return await provider.generate(model, "prompt text", GenerationOptions(0.7, 600, 0.8))
        finally:
            await provider.aclose()

    return asyncio.run(run())


def test_generate_posts_generation_config_and_returns_text():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers.get("x-goog-api-key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_ok("Use the search bar."))

    assert _generate(handler) == "Use the search bar."
    assert seen["path"] == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert seen["key"] == "test-key"
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "prompt text"
    assert seen["body"]["generationConfig"] == {"temperature": 0.7, "maxOutputTokens": 600, "topP": 0.8}


def test_multi_part_text_is_joined():
    payload = {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}}]}
    assert _generate(lambda request: httpx.Response(200, json=payload)) == "Hello there"


@pytest.mark.parametrize("status_code", [400, 404, 429, 500, 503])
def test_error_status_raises_backend_unavailable(status_code):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"error": {"message": "models/x is not found"}})

    with pytest.raises(BackendUnavailable) as exc_info:
        _generate(handler)
    assert exc_info.value.status_code == status_code
    assert "is not found" in str(exc_info.value)


def test_empty_candidates_raise_backend_unavailable():
    with pytest.raises(BackendUnavailable, match="empty response"):
        _generate(lambda request: httpx.Response(200, json={"candidates": []}))


def test_timeout_raises_backend_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(BackendUnavailable, match="timed out"):
        _generate(handler)


def test_malformed_json_raises_backend_unavailable():
    with pytest.raises(BackendUnavailable):
        _generate(lambda request: httpx.Response(200, content=b"not json"))


def test_missing_api_key_is_rejected():
    with pytest.raises(ValueError):
        GeminiProvider("")


def test_unconfigured_backend_never_does_io():
    backend = UnconfiguredBackend()
    assert backend.configured is False
    with pytest.raises(BackendUnavailable):
        asyncio.run(backend.generate("gemini-1.5-flash", "prompt", GenerationOptions()))


@pytest.mark.parametrize(
    "payload",
    [{"candidates": {"x": 1}}, {"candidates": [["content"]]}, ["not", "a", "dict"]],
)
def test_unexpected_payload_shapes_raise_backend_unavailable(payload):
    with pytest.raises(BackendUnavailable, match="malformed response payload"):
        _generate(lambda request: httpx.Response(200, json=payload))
