from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


DEFAULT_MODELS: tuple[str, ...] = (
    "gemini-2.0-flash-exp",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-1.0-pro",
    "gemini-3-flash-preview",
)


@dataclass(frozen=True)
class ChatbotConfig:
    provider: str = "gemini"  # gemini | stub
    api_key: str | None = None
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    models: tuple[str, ...] = DEFAULT_MODELS
    test_models: tuple[str, ...] = DEFAULT_MODELS
    timeout_s: float = 30.0
    temperature: float = 0.7
    max_output_tokens: int = 600
    top_p: float = 0.8
    history_max_turns: int = 10
    default_session_id: str = "default"
    rate_limit_max: int = 100
    rate_limit_window_s: int = 15 * 60
    trust_proxy: bool = False


def split_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


def _env_str(key: str) -> str | None:
    val = (os.getenv(key) or "").strip()
    return val or None


def _env_bool(key: str) -> bool | None:
    if key not in os.environ:
        return None
    val = (os.getenv(key) or "").strip().lower()
    if val in {"1", "true", "yes", "on"}:
        return True
    if val in {"0", "false", "no", "off"}:
        return False
    return None


def _env_int(key: str) -> int | None:
    if key not in os.environ:
        return None
    try:
        return int(os.getenv(key) or "")
    except Exception:
        return None


def _env_float(key: str) -> float | None:
    if key not in os.environ:
        return None
    try:
        return float(os.getenv(key) or "")
    except Exception:
        return None


def _even_turn_limit(value: int) -> int:
    # turns are stored in user/model pairs
    value = max(2, value)
    return value - (value % 2)


@lru_cache(maxsize=1)
def get_chatbot_config() -> ChatbotConfig:
    defaults = ChatbotConfig()

    models = split_csv(os.getenv("GEMINI_MODELS")) or defaults.models
    test_models = split_csv(os.getenv("GEMINI_TEST_MODELS")) or models

    timeout_s = _env_float("GEMINI_TIMEOUT_S")
    temperature = _env_float("GEMINI_TEMPERATURE")
    max_output_tokens = _env_int("GEMINI_MAX_OUTPUT_TOKENS")
    top_p = _env_float("GEMINI_TOP_P")
    history_max_turns = _env_int("CHAT_HISTORY_MAX_TURNS")
    rate_limit_max = _env_int("CHATBOT_RATE_LIMIT_MAX")
    rate_limit_window_s = _env_int("CHATBOT_RATE_LIMIT_WINDOW_S")
    trust_proxy = _env_bool("TRUST_PROXY")

    return ChatbotConfig(
        provider=(_env_str("AI_PROVIDER") or defaults.provider).lower(),
        api_key=_env_str("GEMINI_API_KEY"),
        base_url=(_env_str("GEMINI_BASE_URL") or defaults.base_url).rstrip("/"),
        models=models,
        test_models=test_models,
        timeout_s=(timeout_s if timeout_s is not None and timeout_s > 0 else defaults.timeout_s),
        temperature=(temperature if temperature is not None else defaults.temperature),
        max_output_tokens=(max_output_tokens if max_output_tokens is not None else defaults.max_output_tokens),
        top_p=(top_p if top_p is not None else defaults.top_p),
        history_max_turns=_even_turn_limit(
            history_max_turns if history_max_turns is not None else defaults.history_max_turns
        ),
        default_session_id=_env_str("CHAT_DEFAULT_SESSION_ID") or defaults.default_session_id,
        rate_limit_max=(rate_limit_max if rate_limit_max is not None else defaults.rate_limit_max),
        rate_limit_window_s=(
            rate_limit_window_s if rate_limit_window_s is not None else defaults.rate_limit_window_s
        ),
        trust_proxy=(trust_proxy if trust_proxy is not None else defaults.trust_proxy),
    )
