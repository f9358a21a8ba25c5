from __future__ import annotations

from typing import Protocol

from pharmabot.ai.types import BackendUnavailable, GenerationOptions


class GenerativeBackend(Protocol):
    name: str
    source: str  # reported to clients as the reply's source tag
    configured: bool

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str: ...


class UnconfiguredBackend(GenerativeBackend):
    """
    Stands in for a backend when no credential was supplied at startup.
    """

    name = "unconfigured"
    source = "unconfigured"
    configured = False

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        raise BackendUnavailable("generative backend is not configured", model=model)
