"""
In-memory conversation sessions.

Sessions live in a plain dict keyed by session id. Expiry is lazy: a lookup
that finds an idle session replaces it with a fresh one, and memory is only
reclaimed when `reap_expired` is invoked by an external caller (health check
or the optional background sweep).
"""

from __future__ import annotations

import asyncio
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from completion_gateway.logging_config import logger
from completion_gateway.models import ConversationStats, Message, MessageRole, Session, Usage

DEFAULT_SESSION_TIMEOUT_SECONDS = 30 * 60
DEFAULT_MAX_HISTORY_LENGTH = 20


class ConversationStore:
    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_SESSION_TIMEOUT_SECONDS,
        max_history: int = DEFAULT_MAX_HISTORY_LENGTH,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_history <= 0:
            raise ValueError("max_history must be positive")
        self.timeout_seconds = timeout_seconds
        self.max_history = max_history
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._mutex = threading.Lock()

    def _is_expired(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self.timeout_seconds

    def _create(self, session_id: str, now: float) -> Session:
        session = Session(session_id=session_id, created_at=now, last_activity=now)
        self._sessions[session_id] = session
        logger.info("Created new conversation for session: %s", session_id)
        return session

    def lock(self, session_id: str) -> asyncio.Lock:
        """
        Per-session lock; holders get exclusive use of that session's history.
        """
        with self._mutex:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = asyncio.Lock()
                self._locks[session_id] = lock
            return lock

    def _get_or_create(self, session_id: str, now: float) -> Session:
        # Caller holds self._mutex.
        session = self._sessions.get(session_id)
        if session is None:
            return self._create(session_id, now)
        if self._is_expired(session, now):
            logger.info("Session %s expired, creating new conversation", session_id)
            return self._create(session_id, now)
        return session

    def get(self, session_id: str) -> Session:
        now = self._clock()
        with self._mutex:
            return self._get_or_create(session_id, now)

    def append_message(
        self,
        session_id: str,
        role: MessageRole,
        content: str,
        *,
        model: Optional[str] = None,
        usage: Optional[Usage] = None,
    ) -> Session:
        now = self._clock()
        message = Message(role=role, content=content, timestamp=now, model=model, usage=usage)

        with self._mutex:
            session = self._get_or_create(session_id, now)
            session.messages.append(message)
            session.last_activity = now
            session.total_messages += 1

            if len(session.messages) > self.max_history:
                system_messages = [m for m in session.messages if m.role == "system"]
                keep = max(self.max_history - len(system_messages), 0)
                recent = [m for m in session.messages if m.role != "system"]
                recent = recent[len(recent) - keep :] if keep else []
                session.messages = system_messages + recent
                logger.info("Trimmed conversation history for session: %s", session_id)

        return session

    def formatted_history(self, session_id: str) -> List[Dict[str, str]]:
        now = self._clock()
        with self._mutex:
            session = self._get_or_create(session_id, now)
            return [{"role": m.role, "content": m.content} for m in session.messages]

    def messages(self, session_id: str) -> List[Message]:
        """
        Current history of a live session; empty when there is none.
        """
        now = self._clock()
        with self._mutex:
            session = self._sessions.get(session_id)
            if session is None or self._is_expired(session, now):
                return []
            return list(session.messages)

    def clear(self, session_id: str) -> None:
        """
        Drop the session. Its lock stays registered so queued turns and new
        callers keep sharing one lock; `reap_expired` discards it once idle.
        """
        with self._mutex:
            self._sessions.pop(session_id, None)
        logger.info("Cleared conversation for session: %s", session_id)

    def stats(self, session_id: str) -> Optional[ConversationStats]:
        now = self._clock()
        with self._mutex:
            session = self._sessions.get(session_id)
            if session is None or self._is_expired(session, now):
                return None
            return ConversationStats(
                session_id=session.session_id,
                message_count=len(session.messages),
                total_messages=session.total_messages,
                created_at=datetime.fromtimestamp(session.created_at, tz=timezone.utc),
                last_activity=datetime.fromtimestamp(session.last_activity, tz=timezone.utc),
                duration_ms=max(int((now - session.created_at) * 1000), 0),
            )

    def reap_expired(self) -> int:
        """
        Remove every expired session and return how many were removed.

        Sessions whose lock is held are in active use and left alone.
        """
        now = self._clock()
        removed = 0
        with self._mutex:
            for session_id, session in list(self._sessions.items()):
                if not self._is_expired(session, now):
                    continue
                lock = self._locks.get(session_id)
                if lock is not None and lock.locked():
                    continue
                del self._sessions[session_id]
                self._locks.pop(session_id, None)
                removed += 1
            for session_id, lock in list(self._locks.items()):
                if session_id not in self._sessions and not lock.locked():
                    del self._locks[session_id]

        if removed > 0:
            logger.info("Cleaned up %d expired conversations", removed)
        return removed

    def active_count(self) -> int:
        with self._mutex:
            return len(self._sessions)


__all__ = [
    "ConversationStore",
    "DEFAULT_MAX_HISTORY_LENGTH",
    "DEFAULT_SESSION_TIMEOUT_SECONDS",
]
