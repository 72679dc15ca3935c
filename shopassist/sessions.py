"""Conversation history storage keyed by session id."""

from __future__ import annotations

import random
import threading
import time
from typing import TYPE_CHECKING, Protocol

from .config import config

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import Message

logger = config.get_logger(__name__)


def generate_session_id() -> str:
    """Return a new session id from the current time and a random suffix.

    Collisions are unlikely but not checked: the id is not cryptographically
    unique and must not be used as a secret.
    """  # noqa: DOC201
    return f"sess_{int(time.time() * 1000)}_{random.randrange(1_000_000)}"  # noqa: S311


class SessionStore(Protocol):
    """History store injected into the chat service."""

    def get(self, session_id: str) -> list[Message]:
        ...

    def append(self, session_id: str, messages: Sequence[Message]) -> None:
        ...


class InMemorySessionStore:
    """Process-lifetime history store; contents are lost on restart.

    Appends are serialized per session id, so two concurrent turns on the
    same session both land in the history instead of overwriting each other.
    """

    def __init__(self) -> None:
        self._histories: dict[str, list[Message]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _open(self, session_id: str) -> tuple[threading.Lock, list[Message]]:
        """Lock and history of a session, creating both on first use."""  # noqa: DOC201
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
                self._histories[session_id] = []
            return lock, self._histories[session_id]

    def get(self, session_id: str) -> list[Message]:
        """Snapshot of a session's history (empty for unknown sessions).

        Unknown ids are not registered.

        Returns:
            A copy of the ordered messages.
        """
        with self._registry_lock:
            lock = self._locks.get(session_id)
            history = self._histories.get(session_id)
        if lock is None or history is None:
            return []
        with lock:
            return list(history)

    def append(self, session_id: str, messages: Sequence[Message]) -> None:
        """Append messages to a session in one step."""
        lock, history = self._open(session_id)
        with lock:
            history.extend(messages)
            size = len(history)
        logger.debug("Session %s now holds %d messages", session_id, size)

    def clear(self, session_id: str) -> None:
        with self._registry_lock:
            self._locks.pop(session_id, None)
            self._histories.pop(session_id, None)
        logger.info("Session %s cleared", session_id)

    def session_ids(self) -> list[str]:
        with self._registry_lock:
            return list(self._histories)

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._histories)

    def __contains__(self, session_id: object) -> bool:
        with self._registry_lock:
            return session_id in self._histories
