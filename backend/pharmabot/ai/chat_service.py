from __future__ import annotations

import logging
from functools import lru_cache
from typing import Sequence

from pharmabot.ai.fallback import FALLBACK_SOURCE, resolve_fallback
from pharmabot.ai.provider_factory import get_generative_backend
from pharmabot.ai.providers.base import GenerativeBackend
from pharmabot.ai.session_memory import SessionStore, get_session_store
from pharmabot.ai.types import (
    BackendStatus,
    BackendUnavailable,
    ChatReply,
    ChatTurn,
    GenerationFailure,
    GenerationOptions,
    GenerationResult,
    GenerationSuccess,
    InvalidRequest,
)
from pharmabot.config.chatbot import get_chatbot_config


_logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are "PharmaBot", an AI assistant for an online pharmacy marketplace platform.

IMPORTANT CONTEXT:
You are NOT assisting a single pharmacy. You are helping users navigate an ONLINE MARKETPLACE where:
1. Multiple independent pharmacies register and list their products
2. Users can search for medications across all registered pharmacies
3. Users can compare prices, availability, and delivery options
4. Each pharmacy manages their own inventory, pricing, and services

YOUR ROLE:
Help users understand how to use the platform features effectively.

CRITICAL RULES:
1. NEVER provide medical diagnosis, treatment recommendations, or medication advice
2. ALWAYS redirect medical questions to: "Please consult a licensed pharmacist or healthcare provider"
3. For emergencies: "Please visit the nearest hospital or call emergency services immediately"
4. Focus on explaining PLATFORM FEATURES and how to use them
5. If asked about specific medications: "I recommend searching for it on our platform or consulting a pharmacist"

PLATFORM FEATURES TO EXPLAIN:
- Search: use the search bar to find medications across all pharmacies
- Price comparison: view different prices from multiple pharmacies for the same medication
- Pharmacy selection: each pharmacy has its own profile with ratings, delivery options, and services
- Ordering: select items, choose a pharmacy, select delivery/pickup, and checkout
- Prescription upload: prescription medications ask for a prescription upload during checkout
- Accounts: create an account to track orders, save favorites, and manage prescriptions

HOW TO RESPOND:
1. Focus on platform navigation and features
2. Explain step-by-step how to find what users need
3. Be helpful, friendly, and professional
4. Remember: you are a PLATFORM GUIDE, not a medical advisor"""

TEST_PROMPT = "Say 'Marketplace chatbot ready' in one word"

SUGGESTIONS: tuple[str, ...] = (
    "How do I search for medications?",
    "Can I compare prices between different pharmacies?",
    "How do pharmacies join your platform?",
    "What delivery options are available?",
    "How do I upload a prescription?",
    "How do I create an account?",
    "How do I track my order?",
    "Are there customer reviews for pharmacies?",
)


def build_prompt(message: str) -> str:
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f'USER QUESTION: "{message}"\n\n'
        "Please provide a helpful response focusing on how our pharmacy marketplace platform can assist:"
    )


def _preview(text: str, limit: int = 100) -> str:
    text = text.replace("\n", " ")
    return text if len(text) <= limit else f"{text[:limit]}..."


async def probe_models(
    backend: GenerativeBackend,
    models: Sequence[str],
    prompt: str,
    options: GenerationOptions,
) -> GenerationResult:
    """Try each model once, in order, and stop at the first one that answers."""
    attempts: list[tuple[str, str]] = []
    for model in models:
        try:
            text = await backend.generate(model, prompt, options)
        except BackendUnavailable as exc:
            _logger.info("model failed model=%s error=%s", model, _preview(str(exc), 80))
            attempts.append((model, str(exc)))
            continue
        except Exception as exc:
            _logger.exception("model raised unexpectedly model=%s", model)
            attempts.append((model, f"{exc.__class__.__name__}: {exc}"))
            continue
        return GenerationSuccess(model=model, text=text)
    return GenerationFailure(attempts=tuple(attempts))


class ChatResolutionService:
    def __init__(
        self,
        backend: GenerativeBackend,
        store: SessionStore,
        models: Sequence[str],
        *,
        options: GenerationOptions | None = None,
        test_models: Sequence[str] | None = None,
        default_session_id: str = "default",
    ) -> None:
        self.backend = backend
        self.store = store
        self.models = tuple(models)
        self.test_models = tuple(test_models) if test_models is not None else self.models
        self.options = options or GenerationOptions()
        self.default_session_id = default_session_id

    def _session_id(self, session_id: str | None) -> str:
        return (session_id or "").strip() or self.default_session_id

    async def resolve(self, message: str | None, session_id: str | None = None) -> ChatReply:
        text = message or ""
        if not text.strip():
            raise InvalidRequest("Message is required")
        sid = self._session_id(session_id)
        _logger.info("chat request session=%s message=%r", sid, _preview(text))

        if self.backend.configured:
            try:
                result = await probe_models(self.backend, self.models, build_prompt(text), self.options)
                if isinstance(result, GenerationSuccess):
                    self.store.append(sid, text, result.text)
                    _logger.info(
                        "chat generated session=%s model=%s chars=%s", sid, result.model, len(result.text)
                    )
                    return ChatReply(
                        reply=result.text,
                        session_id=sid,
                        source=self.backend.source,
                        is_fallback=False,
                        model=result.model,
                        backend_available=True,
                    )
                _logger.warning(
                    "all models failed session=%s tried=%s", sid, ",".join(m for m, _ in result.attempts)
                )
            except Exception:
                _logger.exception("chat generation failed unexpectedly session=%s", sid)
        else:
            _logger.info("generative backend not configured; using fallback session=%s", sid)

        fallback = resolve_fallback(text)
        return ChatReply(
            reply=fallback.text,
            session_id=sid,
            source=FALLBACK_SOURCE,
            is_fallback=True,
            bucket=fallback.bucket,
            backend_available=self.backend.configured,
        )

    def history(self, session_id: str | None = None) -> list[ChatTurn]:
        return self.store.get(self._session_id(session_id))

    def clear(self, session_id: str | None = None) -> str:
        sid = self._session_id(session_id)
        self.store.clear(sid)
        _logger.info("chat history cleared session=%s", sid)
        return sid

    def suggestions(self) -> list[str]:
        return list(SUGGESTIONS)

    async def check_backend(self) -> BackendStatus:
        if not self.backend.configured:
            return BackendStatus(status="no-api-key")
        result = await probe_models(self.backend, self.test_models, TEST_PROMPT, self.options)
        if isinstance(result, GenerationSuccess):
            return BackendStatus(status="connected", model=result.model, test_response=result.text)
        _logger.warning("backend check failed tried=%s", ",".join(m for m, _ in result.attempts))
        return BackendStatus(status="unreachable")


@lru_cache(maxsize=1)
def get_chat_service() -> ChatResolutionService:
    cfg = get_chatbot_config()
    return ChatResolutionService(
        get_generative_backend(),
        get_session_store(),
        cfg.models,
        options=GenerationOptions(
            temperature=cfg.temperature,
            max_output_tokens=cfg.max_output_tokens,
            top_p=cfg.top_p,
        ),
        test_models=cfg.test_models,
        default_session_id=cfg.default_session_id,
    )
