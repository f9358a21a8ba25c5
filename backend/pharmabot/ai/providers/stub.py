from __future__ import annotations

import re

from pharmabot.ai.types import BackendUnavailable, GenerationOptions
from .base import GenerativeBackend


_QUESTION_RE = re.compile(r'USER QUESTION: "(.*)"', re.DOTALL)


class StubProvider(GenerativeBackend):
    """
    Deterministic provider for tests/dev when an external LLM is not configured.

    Models listed in `failing_models` always raise `BackendUnavailable`, which
    lets the model priority list be exercised without network access.
    """

    name = "stub"
    source = "stub"
    configured = True

    def __init__(self, failing_models: set[str] | frozenset[str] | tuple[str, ...] = ()) -> None:
        self.failing_models = frozenset(failing_models)
        self.calls: list[str] = []

    async def generate(self, model: str, prompt: str, options: GenerationOptions) -> str:
        self.calls.append(model)
        if model in self.failing_models:
            raise BackendUnavailable("stub: simulated model outage", model=model, status_code=503)
        match = _QUESTION_RE.search(prompt or "")
        question = match.group(1).strip() if match else (prompt or "").strip()
        return (
            f"You asked: {question[:160]}. Use the search bar to compare prices and delivery "
            "options across registered pharmacies."
        )
