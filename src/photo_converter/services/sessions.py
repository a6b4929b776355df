"""Pending-photo sessions, at most one per chat."""

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from photo_converter.domain.conversions import ChatSession
from photo_converter.domain.errors import SessionConflict


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class ConversionSessionStore:
    """In-memory map of chat id to the photo awaiting a format choice.

    All access goes through a single lock. Each operation is a constant-time
    dict update, so chats do not hold each other up. Sessions live for the
    lifetime of the process only.
    """

    clock: Callable[[], datetime] = _utcnow
    _sessions: dict[int, ChatSession] = field(default_factory=dict, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def begin_session(self, chat_id: int, asset_ref: str) -> ChatSession:
        """Store a pending photo, raising SessionConflict if one is already held."""
        with self._lock:
            existing = self._sessions.get(chat_id)
            if existing is not None:
                raise SessionConflict(existing)
            session = ChatSession(
                chat_id=chat_id, asset_ref=asset_ref, created_at=self.clock()
            )
            self._sessions[chat_id] = session
            return session

    def resolve_session(self, chat_id: int) -> str | None:
        """Remove the chat's session and return its asset ref, exactly once."""
        with self._lock:
            session = self._sessions.pop(chat_id, None)
        return session.asset_ref if session else None

    def has_session(self, chat_id: int) -> bool:
        with self._lock:
            return chat_id in self._sessions

    def get_session(self, chat_id: int) -> ChatSession | None:
        with self._lock:
            return self._sessions.get(chat_id)

    def discard_session(self, chat_id: int) -> bool:
        """Drop the chat's session without converting; True if one existed."""
        with self._lock:
            return self._sessions.pop(chat_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
