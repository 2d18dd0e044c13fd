"""engine.py — Turn Processing Boundary
========================================

``HoneypotEngine.process_turn(session_id, text)`` is the one logical
operation the core exposes:

    1. Validate input            → InvalidInputError, before any state access
    2. Acquire the session lock  → SessionBusyError on timeout
    3. Load prior state          → PersistenceUnavailableError on store failure
                                   (never falls back to default state)
    4. State machine advance     → new Session + ConversationTurn + TurnResult
    5. Commit turn and session   → one store operation; on failure nothing is
                                   stored and PersistenceUnavailableError is raised

Requests for different session ids run fully in parallel; requests for the
same id are serialized by the per-session lock. There are no retries here;
retrying SessionBusy / PersistenceUnavailable is the caller's decision.
"""

import logging
from typing import Optional

from honeypot.config import EngineConfig, load_config
from honeypot.errors import (
    HoneypotError,
    InvalidInputError,
    PersistenceUnavailableError,
    UnknownSessionError,
)
from honeypot.models import ConversationTurn, Session, SessionSnapshot, TurnResult
from honeypot.state_machine import EngagementStateMachine
from honeypot.store import InMemorySessionStore, SessionLockRegistry, SessionStore

logger = logging.getLogger(__name__)


class HoneypotEngine:

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        config: Optional[EngineConfig] = None,
        machine: Optional[EngagementStateMachine] = None,
        locks: Optional[SessionLockRegistry] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.store = store if store is not None else InMemorySessionStore(self.config.session_expiry_seconds)
        self.machine = machine or EngagementStateMachine(self.config)
        self.locks = locks or SessionLockRegistry()

    # ================================================================
    # PUBLIC OPERATIONS
    # ================================================================

    def process_turn(self, session_id: str, text: str) -> TurnResult:
        """Score one inbound message and advance the session."""
        self._validate_session_id(session_id)
        self._validate_text(session_id, text)

        with self.locks.hold(session_id, self.config.session_lock_timeout):
            prior = self._load(session_id)
            if prior is None:
                logger.info(f"[{session_id[:8]}] NEW SESSION")

            outcome = self.machine.advance(session_id, text, prior)
            self._commit(outcome.session, outcome.turn)

        result = outcome.result
        logger.info(
            f"[{session_id[:8]}] TURN {result.turnIndex}  "
            f"confidence={result.confidence:.3f}  scam={result.isScam}  "
            f"locked={result.confidenceLocked}  phase={result.phase.value}  "
            f"directive={result.behaviorDirective.value}  "
            f"archetype={result.scamArchetype.value if result.scamArchetype else 'none'}"
        )
        return result

    def record_reply(self, session_id: str, text: str) -> ConversationTurn:
        """Append the externally composed agent reply to the transcript."""
        self._validate_session_id(session_id)
        self._validate_text(session_id, text)

        with self.locks.hold(session_id, self.config.session_lock_timeout):
            snapshot = self._load(session_id)
            if snapshot is None:
                raise UnknownSessionError(session_id)
            turn = self.machine.agent_turn(snapshot, text)
            self._append(session_id, turn)
        return turn

    def get_session(self, session_id: str) -> SessionSnapshot:
        """Read-only view of a session and its turns."""
        self._validate_session_id(session_id)
        snapshot = self._load(session_id)
        if snapshot is None:
            raise UnknownSessionError(session_id)
        return snapshot

    # ================================================================
    # VALIDATION
    # ================================================================

    @staticmethod
    def _validate_session_id(session_id: str) -> None:
        if not isinstance(session_id, str) or not session_id.strip():
            raise InvalidInputError("sessionId must be a non-empty string")

    @staticmethod
    def _validate_text(session_id: str, text: str) -> None:
        if not isinstance(text, str):
            raise InvalidInputError(
                f"message text must be a string, got {type(text).__name__}", session_id,
            )
        if not text.strip():
            raise InvalidInputError("message text must not be empty", session_id)

    # ================================================================
    # STORE ACCESS — every failure surfaces as PersistenceUnavailable
    # ================================================================

    def _load(self, session_id: str) -> Optional[SessionSnapshot]:
        try:
            return self.store.load(session_id)
        except HoneypotError:
            raise
        except Exception as exc:
            logger.error(f"[{session_id[:8]}] Session load failed: {exc}")
            raise PersistenceUnavailableError(session_id, "load") from exc

    def _append(self, session_id: str, turn: ConversationTurn) -> None:
        try:
            self.store.append_turn(session_id, turn)
        except HoneypotError:
            raise
        except Exception as exc:
            logger.error(f"[{session_id[:8]}] Turn append failed: {exc}")
            raise PersistenceUnavailableError(session_id, "append_turn") from exc

    def _commit(self, session: Session, turn: ConversationTurn) -> None:
        try:
            self.store.commit(session, turn)
        except HoneypotError:
            raise
        except Exception as exc:
            logger.error(f"[{session.sessionId[:8]}] Turn commit failed: {exc}")
            raise PersistenceUnavailableError(session.sessionId, "commit") from exc


def build_engine(config: Optional[EngineConfig] = None) -> HoneypotEngine:
    """Engine wired to the in-memory store and environment configuration."""
    config = config or load_config()
    return HoneypotEngine(InMemorySessionStore(config.session_expiry_seconds), config)
