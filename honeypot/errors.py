"""errors.py — Typed Error Hierarchy
====================================

Every failure the core reports to its caller is a ``HoneypotError`` carrying:
    - kind:        ErrorKind (stable, machine-readable)
    - http_status: status code used by the HTTP shim
    - session_id:  the session the failure belongs to (if any)

Scorers and the extractor never raise; only the turn-processing boundary does.
A brand-new session id is not an error: it initializes default state.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Machine-readable failure categories surfaced to callers."""
    INVALID_INPUT = "InvalidInput"
    SESSION_BUSY = "SessionBusy"
    PERSISTENCE_UNAVAILABLE = "PersistenceUnavailable"
    UNKNOWN_SESSION = "UnknownSession"


class HoneypotError(Exception):
    """Base exception for all honeypot core errors."""

    retryable: bool = False

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        session_id: Optional[str] = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.session_id = session_id
        self.http_status = http_status
        self.timestamp = datetime.now(timezone.utc)

    def to_response(self) -> dict:
        """Convert to the JSON error envelope returned by the HTTP shim."""
        return {
            "error": {
                "kind": self.kind.value,
                "message": self.message,
                "sessionId": self.session_id,
                "retryable": self.retryable,
                "timestamp": self.timestamp.isoformat(),
            }
        }


class InvalidInputError(HoneypotError):
    """Message text or session id rejected before scoring."""
    def __init__(self, message: str, session_id: Optional[str] = None):
        super().__init__(message, ErrorKind.INVALID_INPUT, session_id, 400)


class SessionBusyError(HoneypotError):
    """Another request holds this session's lock; the caller should retry."""

    retryable = True

    def __init__(self, session_id: str, timeout: float):
        super().__init__(
            f"Session is busy (lock not acquired within {timeout:g}s)",
            ErrorKind.SESSION_BUSY, session_id, 409,
        )
        self.timeout = timeout


class PersistenceUnavailableError(HoneypotError):
    """The session store failed to load or save state."""

    retryable = True

    def __init__(self, session_id: str, operation: str):
        super().__init__(
            f"Session store unavailable during {operation}",
            ErrorKind.PERSISTENCE_UNAVAILABLE, session_id, 503,
        )
        self.operation = operation


class UnknownSessionError(HoneypotError):
    """A read-only lookup referenced a session that does not exist."""
    def __init__(self, session_id: str):
        super().__init__(
            "Unknown session", ErrorKind.UNKNOWN_SESSION, session_id, 404,
        )
