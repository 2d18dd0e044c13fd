"""legitimacy.py — Legitimacy Claim Handler & Downgrade Veto
============================================================

Scammers frequently try to talk a detector down after being challenged:
"this is not a scam", "I am from the real bank", "I am not a scammer".

Two responsibilities:
    handle() → detects such claims; may only annotate
               ``userClaimedLegitimate`` for reporting
    veto()   → final gate applied to every proposed session update;
               re-asserts the ratchets so nothing downstream of fusion can
               lower confidence, clear the verdict, unlock, or move the
               phase backwards
"""

import logging
import re
from typing import Tuple

from honeypot.models import EngagementPhase, Session, SessionPatch

logger = logging.getLogger(__name__)


LEGITIMACY_CLAIMS: Tuple[re.Pattern, ...] = tuple(re.compile(p, re.IGNORECASE) for p in (
    r"\b(?:this|it)\s+is\s+(?:not|n'?t)\s+(?:a\s+)?(?:scam|fraud|fake)\b",
    r"\b(?:i\s*am|i'?m)\s+(?:not|no)\s+(?:a\s+)?(?:scammer|fraud|fraudster|thief|cheat)\b",
    r"\b(?:i\s*am|i'?m|we\s+are)\s+(?:calling\s+)?from\s+(?:the\s+|your\s+)?(?:real|genuine|official|actual)\b",
    r"\b(?:this|it)\s+is\s+(?:100%\s+|completely\s+|totally\s+)?(?:real|genuine|legit|legitimate|official|authentic|true)\b",
    r"\b(?:my|the|your)\s+(?:real|genuine)\s+bank\b",
    r"\b(?:trust\s+me|believe\s+me)\b",
    r"\b(?:they|we)\s+are\s+(?:legit|legitimate|genuine)\b",
))


class LegitimacyOverrideHandler:

    def is_claim(self, text: str) -> bool:
        if not isinstance(text, str) or not text.strip():
            return False
        return any(pattern.search(text) for pattern in LEGITIMACY_CLAIMS)

    def handle(self, text: str, session: Session) -> SessionPatch:
        """Annotate a legitimacy claim. Confidence and verdict are never touched."""
        claimed = self.is_claim(text)
        if claimed and (session.isScam or session.confidenceLocked):
            logger.info(f"[{session.sessionId[:8]}] Legitimacy claim ignored (verdict held)")
        return SessionPatch(userClaimedLegitimate=session.userClaimedLegitimate or claimed)

    @staticmethod
    def veto(prior: Session, proposed: Session) -> Session:
        """Return ``proposed`` with every ratcheted field forced monotonic."""
        if prior.confidenceLocked:
            confidence = prior.confidence
        else:
            confidence = max(prior.confidence, proposed.confidence)
        return proposed.model_copy(update={
            "confidence": confidence,
            "isScam": prior.isScam or proposed.isScam,
            "confidenceLocked": prior.confidenceLocked or proposed.confidenceLocked,
            "engagementPhase": EngagementPhase.latest(prior.engagementPhase, proposed.engagementPhase),
        })
