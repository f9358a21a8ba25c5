from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Union


Role = Literal["user", "model"]


class ChatbotError(RuntimeError):
    pass


class InvalidRequest(ChatbotError):
    pass


class BackendUnavailable(ChatbotError):
    def __init__(self, message: str, *, model: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.model = model
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"backend unavailable ({self.status_code})" if self.status_code is not None else "backend unavailable"
        return f"{prefix}: {self.args[0]}"


@dataclass(frozen=True)
class ChatTurn:
    role: Role
    text: str


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float = 0.7
    max_output_tokens: int = 600
    top_p: float = 0.8


@dataclass(frozen=True)
class GenerationSuccess:
    model: str
    text: str


@dataclass(frozen=True)
class GenerationFailure:
    # (model, error) in the order the models were tried
    attempts: tuple[tuple[str, str], ...] = ()


GenerationResult = Union[GenerationSuccess, GenerationFailure]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatReply:
    reply: str
    session_id: str
    source: str
    is_fallback: bool
    timestamp: datetime = field(default_factory=utcnow)
    model: str | None = None
    bucket: str | None = None
    backend_available: bool = False


@dataclass(frozen=True)
class BackendStatus:
    status: Literal["connected", "unreachable", "no-api-key"]
    model: str | None = None
    test_response: str | None = None
    timestamp: datetime = field(default_factory=utcnow)
