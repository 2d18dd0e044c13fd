"""store.py — Session Store Contract, In-Memory Store & Session Locks
=====================================================================

The core treats persistence as an external key-value collaborator with three
operations (``SessionStore`` protocol):

    load(session_id)            → SessionSnapshot | None   (None = new session)
    commit(session, turn)       → append the user turn AND persist the
                                  rewritten Session as one unit
    append_turn(session_id, t)  → append one immutable agent ConversationTurn
                                  (replies never change the Session)

``commit`` is all-or-nothing: when it raises, neither the turn nor the session
is stored, so the transcript and the session record can never disagree and a
retried message is processed exactly once.

``InMemorySessionStore`` is the default implementation for single-process
deployments and tests. Expired sessions are purged every 10 minutes.

Thread safety:
    All store mutations are protected by a threading.Lock. Serializing the
    load → compute → commit sequence per session is the job of
    ``SessionLockRegistry``: one lock per session id, so requests for
    different sessions never wait on each other. Locks are held weakly and
    disappear once no request is using them.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional, Protocol

from honeypot.errors import SessionBusyError
from honeypot.models import ConversationTurn, Session, SessionSnapshot

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Key-value session persistence consumed by the engine."""

    def load(self, session_id: str) -> Optional[SessionSnapshot]: ...

    def commit(self, session: Session, turn: ConversationTurn) -> None: ...

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None: ...


class InMemorySessionStore:
    """Thread-safe dict-backed store with periodic expiry cleanup."""

    CLEANUP_INTERVAL = timedelta(minutes=10)

    def __init__(self, expiry_seconds: int = 3600) -> None:
        self._sessions: Dict[str, Session] = {}
        self._turns: Dict[str, List[ConversationTurn]] = {}
        self._lock = threading.Lock()
        self._expiry = timedelta(seconds=expiry_seconds)
        self._last_cleanup: datetime = datetime.now(timezone.utc)

    def load(self, session_id: str) -> Optional[SessionSnapshot]:
        with self._lock:
            self._maybe_cleanup()
            session = self._sessions.get(session_id)
            if session is None:
                return None
            return SessionSnapshot(
                session=session,
                turns=list(self._turns.get(session_id, [])),
            )

    def commit(self, session: Session, turn: ConversationTurn) -> None:
        """Store the turn and the session together, or neither."""
        with self._lock:
            turns = self._turns.get(session.sessionId, [])
            self._check_sequence(turns, turn)
            self._turns[session.sessionId] = turns + [turn]
            self._sessions[session.sessionId] = session

    def append_turn(self, session_id: str, turn: ConversationTurn) -> None:
        """Append a turn to an existing session; its index must be exactly the next one."""
        with self._lock:
            if session_id not in self._sessions:
                raise KeyError(f"no session {session_id!r} to append to")
            turns = self._turns.setdefault(session_id, [])
            self._check_sequence(turns, turn)
            turns.append(turn)

    @staticmethod
    def _check_sequence(turns: List[ConversationTurn], turn: ConversationTurn) -> None:
        if turn.turnIndex != len(turns):
            raise ValueError(
                f"turnIndex {turn.turnIndex} out of sequence (expected {len(turns)})"
            )

    def _maybe_cleanup(self) -> None:
        """Purge sessions idle longer than the expiry. Called under lock."""
        now = datetime.now(timezone.utc)
        if (now - self._last_cleanup) < self.CLEANUP_INTERVAL:
            return

        self._last_cleanup = now
        threshold = now - self._expiry
        expired = [
            sid for sid, session in self._sessions.items()
            if session.updatedAt < threshold
        ]
        for sid in expired:
            del self._sessions[sid]
            self._turns.pop(sid, None)
        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")

    def cleanup_session(self, session_id: str) -> None:
        """Manually drop a session and its turns."""
        with self._lock:
            self._sessions.pop(session_id, None)
            self._turns.pop(session_id, None)

    def get_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)


class SessionLockRegistry:
    """One lock per session id, alive only while some request references it."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[session_id] = lock
            return lock

    @contextmanager
    def hold(self, session_id: str, timeout: float) -> Iterator[None]:
        """Exclusive access to one session; SessionBusyError on timeout.

        ``timeout`` < 0 waits forever, 0 fails immediately if the lock is held.
        """
        lock = self._lock_for(session_id)
        if not lock.acquire(timeout=-1 if timeout < 0 else timeout):
            logger.warning(f"[{session_id[:8]}] Session busy (timeout={timeout:g}s)")
            raise SessionBusyError(session_id, timeout)
        try:
            yield
        finally:
            lock.release()
