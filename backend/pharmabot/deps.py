from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from pharmabot.config.chatbot import ChatbotConfig, get_chatbot_config
from pharmabot.utils.rate_limit import FixedWindowRateLimiter


@lru_cache(maxsize=1)
def get_chat_rate_limiter() -> FixedWindowRateLimiter:
    cfg = get_chatbot_config()
    return FixedWindowRateLimiter(cfg.rate_limit_max, cfg.rate_limit_window_s)


def _client_key(request: Request, trust_proxy: bool = False) -> str:
    # X-Forwarded-For is client-controlled unless a reverse proxy rewrites it
    if trust_proxy:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded and forwarded.split(",")[0].strip():
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_chat_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_chat_rate_limiter),
    cfg: ChatbotConfig = Depends(get_chatbot_config),
) -> None:
    if not limiter.hit(_client_key(request, cfg.trust_proxy)):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many chatbot requests, please try again later",
        )
