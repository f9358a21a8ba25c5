from __future__ import annotations

import logging
import time

import httpx

from pharmabot.ai.types import BackendUnavailable, GenerationOptions
from .base import GenerativeBackend


_logger = logging.getLogger(__name__)


class GeminiProvider(GenerativeBackend):
    name = "gemini"
    source = "gemini-ai"
    configured = True

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("GEMINI_API_KEY is not set")
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_s,
            headers={"x-goog-api-key": api_key},
            transport=transport,
        )

    @staticmethod
    def _error_message(res: httpx.Response) -> str:
        try:
            payload = res.json()
            message = payload.get("error", {}).get("message") or payload.get("message") or res.text
        except Exception:
            message = res.text
        return str(message)

    @staticmethod
    def _extract_text(data: dict) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        if not model:
            raise BackendUnavailable("Model is required")

        start = time.time()
        try:
            res = await self._client.post(
                f"/models/{model}:generateContent",
                json={
                    "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                    "generationConfig": {
                        "temperature": float(options.temperature),
                        "maxOutputTokens": int(options.max_output_tokens),
                        "topP": float(options.top_p),
                    },
                },
            )
        except httpx.TimeoutException as exc:
            _logger.info("gemini generate timeout model=%s timeout_s=%s", model, self.timeout_s)
            raise BackendUnavailable(f"request timed out after {self.timeout_s}s", model=model) from exc
        except httpx.HTTPError as exc:
            _logger.info("gemini generate transport error model=%s error=%s", model, exc)
            raise BackendUnavailable(str(exc) or exc.__class__.__name__, model=model) from exc

        elapsed_ms = int((time.time() - start) * 1000)
        _logger.info("gemini generate status=%s model=%s ms=%s", res.status_code, model, elapsed_ms)
        if res.status_code >= 400:
            raise BackendUnavailable(self._error_message(res), model=model, status_code=res.status_code)

        try:
            text = self._extract_text(res.json())
        except (ValueError, AttributeError, TypeError, KeyError, IndexError) as exc:
            raise BackendUnavailable("malformed response payload", model=model, status_code=res.status_code) from exc
        if not text.strip():
            raise BackendUnavailable("empty response", model=model, status_code=res.status_code)
        return text
