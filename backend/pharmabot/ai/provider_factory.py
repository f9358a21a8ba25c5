from __future__ import annotations

import logging
import os
from functools import lru_cache

from pharmabot.ai.providers.base import GenerativeBackend, UnconfiguredBackend
from pharmabot.ai.providers.gemini import GeminiProvider
from pharmabot.ai.providers.stub import StubProvider
from pharmabot.config.chatbot import get_chatbot_config, split_csv


_logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_generative_backend() -> GenerativeBackend:
    cfg = get_chatbot_config()
    if cfg.provider == "stub":
        return StubProvider(failing_models=split_csv(os.getenv("CHATBOT_STUB_FAIL_MODELS")))
    if cfg.provider == "gemini":
        if not cfg.api_key:
            _logger.warning("GEMINI_API_KEY is not set; chatbot will answer from canned responses only")
            return UnconfiguredBackend()
        _logger.info("gemini backend initialized models=%s", ",".join(cfg.models))
        return GeminiProvider(cfg.api_key, base_url=cfg.base_url, timeout_s=cfg.timeout_s)
    raise RuntimeError(f"Unsupported AI_PROVIDER: {cfg.provider}")
