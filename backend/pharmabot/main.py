import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pharmabot import schemas
from pharmabot.ai.provider_factory import get_generative_backend
from pharmabot.ai.types import utcnow
from pharmabot.config.chatbot import split_csv
from pharmabot.routes.chatbot_routes import router as chatbot_router


def _configure_logging() -> None:
    level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(_: FastAPI):
    _configure_logging()
    get_generative_backend()
    try:
        yield
    finally:
        # Avoid creating a backend just to close it.
        if get_generative_backend.cache_info().currsize > 0:
            backend = get_generative_backend()
            close = getattr(backend, "aclose", None)
            if callable(close):
                await close()

app = FastAPI(title="Pharmacy Marketplace Chatbot Backend", lifespan=lifespan)

cors_origins = list(split_csv(os.getenv("CORS_ORIGINS"))) or [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
cors_origin_regex = os.getenv("CORS_ALLOW_ORIGIN_REGEX") or r"^https?://([a-z0-9-]+\.)*localhost(:\d+)?$"
# `.env` files often double-escape backslashes (e.g. `\\d` instead of `\d`); normalize so CORS preflight works.
cors_origin_regex = cors_origin_regex.replace("\\\\", "\\")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=cors_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(chatbot_router)


@app.get("/health", response_model=schemas.HealthOut)
def health():
    return schemas.HealthOut(
        status="OK",
        timestamp=utcnow(),
        environment=os.getenv("APP_ENV") or "development",
    )
