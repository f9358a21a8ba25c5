from __future__ import annotations

import threading
from functools import lru_cache
from typing import Protocol

from pharmabot.ai.types import ChatTurn
from pharmabot.config.chatbot import get_chatbot_config


class SessionStore(Protocol):
    def get(self, session_id: str) -> list[ChatTurn]: ...

    def append(self, session_id: str, user_text: str, model_text: str) -> None: ...

    def clear(self, session_id: str) -> None: ...


class InMemorySessionStore(SessionStore):
    """
    Process-local chat history keyed by session id.

    Each session keeps at most `max_turns` turns, oldest first. Appends for the
    same session are serialized by a per-session lock; different sessions
    never wait on each other. History is lost on restart.
    """

    def __init__(self, max_turns: int = 10) -> None:
        if max_turns < 2 or max_turns % 2:
            raise ValueError("max_turns must be an even number >= 2")
        self.max_turns = max_turns
        self._sessions: dict[str, list[ChatTurn]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _session_lock(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    def _existing_lock(self, session_id: str) -> threading.Lock | None:
        with self._guard:
            return self._locks.get(session_id)

    def get(self, session_id: str) -> list[ChatTurn]:
        lock = self._existing_lock(session_id)
        if lock is None:
            return []
        with lock:
            return list(self._sessions.get(session_id, ()))

    def append(self, session_id: str, user_text: str, model_text: str) -> None:
        while True:
            lock = self._session_lock(session_id)
            with lock:
                # cleared while this call was waiting; start over on the new lock
                if self._existing_lock(session_id) is not lock:
                    continue
                turns = self._sessions.setdefault(session_id, [])
                turns.append(ChatTurn(role="user", text=user_text))
                turns.append(ChatTurn(role="model", text=model_text))
                overflow = len(turns) - self.max_turns
                if overflow > 0:
                    del turns[:overflow]
                return

    def clear(self, session_id: str) -> None:
        lock = self._existing_lock(session_id)
        if lock is None:
            return
        with lock:
            with self._guard:
                self._sessions.pop(session_id, None)
                if self._locks.get(session_id) is lock:
                    del self._locks[session_id]

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


@lru_cache(maxsize=1)
def get_session_store() -> InMemorySessionStore:
    return InMemorySessionStore(max_turns=get_chatbot_config().history_max_turns)
