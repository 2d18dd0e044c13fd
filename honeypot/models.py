"""
models.py — Pydantic Session, Turn and Result Schemas
======================================================

Defines the data model of the scoring/engagement core plus the HTTP
request/response payloads of the API shim.

Entity flow:
    inbound text → ScoreBreakdown (per user turn, frozen)
                 → ConversationTurn (frozen, contiguous turnIndex)
                 → Session (rewritten once per turn by the state machine)
                 → TurnResult (closed structure handed to collaborators)

Design decisions:
    - Turn-level records are frozen: once appended they never change.
    - TurnResult is closed: every field is always present, with None / empty
      collections as explicit sentinels instead of absent keys.
    - Intel sets serialize as sorted lists for stable JSON output.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class SessionStatus(str, Enum):
    ACTIVE = "active"
    TERMINATED = "terminated"


class EngagementPhase(str, Enum):
    """Bait-conversation stage. Ordered: early < mid < late < final."""
    EARLY = "early"
    MID = "mid"
    LATE = "late"
    FINAL = "final"

    @property
    def rank(self) -> int:
        return _PHASE_ORDER.index(self)

    @classmethod
    def latest(cls, *phases: "EngagementPhase") -> "EngagementPhase":
        """Return the furthest-advanced of the given phases."""
        return max(phases, key=lambda phase: phase.rank)


_PHASE_ORDER = (
    EngagementPhase.EARLY,
    EngagementPhase.MID,
    EngagementPhase.LATE,
    EngagementPhase.FINAL,
)


class Role(str, Enum):
    USER = "user"      # the suspected fraudster
    AGENT = "agent"    # the honeypot persona


class ScamCategory(str, Enum):
    """Signal categories produced by the pattern and context scorers."""
    BANKING = "banking"
    CREDENTIAL_REQUEST = "credentialRequest"
    UPI_PAYMENT = "upiPayment"
    LOTTERY_PRIZE = "lotteryPrize"
    PHISHING_LINKS = "phishingLinks"
    FAKE_OFFERS = "fakeOffers"
    URGENCY = "urgency"
    CONTACT_REQUESTS = "contactRequests"
    AUTHORITY = "authorityImpersonation"


class Emotion(str, Enum):
    ANGRY = "angry"
    CONFUSED = "confused"
    FEAR = "fear"
    URGENT = "urgent"
    EXCITED = "excited"
    TRUSTING = "trusting"
    HESITANT = "hesitant"
    NEUTRAL = "neutral"


class BehaviorDirective(str, Enum):
    """Instruction for the external reply composer, one per phase."""
    PASSIVE_CURIOUS = "PASSIVE_CURIOUS"
    PROBE_FOR_INTEL = "PROBE_FOR_INTEL"
    STALL_AND_DOUBT = "STALL_AND_DOUBT"
    REFUSE_AND_ADVISE_ONLY = "REFUSE_AND_ADVISE_ONLY"


class Archetype(str, Enum):
    """Dominant scam narrative for a whole session."""
    BANKING = "banking"
    PHISHING = "phishing"
    FAKE_OFFERS = "fakeOffers"
    URGENCY_ONLY = "urgencyOnly"
    CONTACT_REQUESTS = "contactRequests"
    MIXED = "mixed"


class TargetAsset(str, Enum):
    """What the scammer is trying to obtain."""
    OTP = "OTP"
    UPI_PAYMENT = "UPI_PAYMENT"
    PASSWORD = "PASSWORD"
    CREDIT_CARD = "CREDIT_CARD"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    QR_CODE = "QR_CODE"
    MONEY = "MONEY"
    DEVICE_ACCESS = "DEVICE_ACCESS"
    PERSONAL_INFO = "PERSONAL_INFO"


# ═══════════════════════════════════════════════════════════════════════
# VALUE OBJECTS
# ═══════════════════════════════════════════════════════════════════════

class ExtractedIntel(BaseModel):
    """Identifiers pulled from attacker text. Unioned at session level."""
    model_config = ConfigDict(frozen=True)

    upiIds: FrozenSet[str] = Field(default_factory=frozenset)        # e.g. verify@paytm
    phoneNumbers: FrozenSet[str] = Field(default_factory=frozenset)  # bare 10-digit mobiles
    urls: FrozenSet[str] = Field(default_factory=frozenset)          # scheme, www. or bare domain

    @field_serializer("upiIds", "phoneNumbers", "urls")
    def _sorted(self, values: FrozenSet[str]) -> List[str]:
        return sorted(values)

    def is_empty(self) -> bool:
        return not (self.upiIds or self.phoneNumbers or self.urls)

    def type_count(self) -> int:
        """Number of distinct intel types present (0-3)."""
        return sum(1 for values in (self.upiIds, self.phoneNumbers, self.urls) if values)

    def union(self, other: "ExtractedIntel") -> "ExtractedIntel":
        return ExtractedIntel(
            upiIds=self.upiIds | other.upiIds,
            phoneNumbers=self.phoneNumbers | other.phoneNumbers,
            urls=self.urls | other.urls,
        )


class ScoreBreakdown(BaseModel):
    """Everything computed for one user turn. Never mutated."""
    model_config = ConfigDict(frozen=True)

    patternScore: float = Field(ge=0.0, le=1.0)
    behaviorScore: float = Field(ge=0.0, le=1.0)
    contextScore: float = Field(ge=0.0, le=1.0)
    urgencyScore: float = Field(ge=0.0, le=1.0)
    intelScore: float = Field(ge=0.0, le=1.0)
    rawConfidence: float = Field(ge=0.0, le=1.0)     # fusion output before the decay guard
    fusedConfidence: float = Field(ge=0.0, le=1.0)   # guarded value emitted for this turn
    pressureVelocity: float = 0.0
    detectedEmotion: Emotion = Emotion.NEUTRAL
    intensity: float = Field(default=0.0, ge=0.0, le=1.0)
    detectedCategories: List[ScamCategory] = Field(default_factory=list)


class BehaviorPolicy(BaseModel):
    """Constraints the reply composer must respect for a directive."""
    model_config = ConfigDict(frozen=True)

    directive: BehaviorDirective
    allowQuestions: bool
    allowEngagement: bool
    baitAllowed: bool
    tone: str
    description: str


class ResponseHint(BaseModel):
    """Tone guidance derived from the sender's emotion and the current phase."""
    model_config = ConfigDict(frozen=True)

    tone: str
    action: str
    priority: str


# ═══════════════════════════════════════════════════════════════════════
# SESSION RECORDS
# ═══════════════════════════════════════════════════════════════════════

class ConversationTurn(BaseModel):
    """One message in a session. Immutable once appended."""
    model_config = ConfigDict(frozen=True)

    turnIndex: int = Field(ge=0)
    role: Role
    text: str
    timestamp: datetime = Field(default_factory=utc_now)
    scores: Optional[ScoreBreakdown] = None   # user turns only


class Session(BaseModel):
    """Long-lived per-session state, rewritten once per inbound message."""

    sessionId: str
    status: SessionStatus = SessionStatus.ACTIVE
    engagementPhase: EngagementPhase = EngagementPhase.EARLY
    isScam: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    confidenceLocked: bool = False
    scamArchetype: Optional[Archetype] = None
    userClaimedLegitimate: bool = False
    # Insertion order is first-detection order (used for archetype tie-breaks)
    categoryWeights: Dict[ScamCategory, float] = Field(default_factory=dict)
    extractedIntel: ExtractedIntel = Field(default_factory=ExtractedIntel)
    emotionHistory: List[Emotion] = Field(default_factory=list)
    createdAt: datetime = Field(default_factory=utc_now)
    updatedAt: datetime = Field(default_factory=utc_now)


class SessionSnapshot(BaseModel):
    """A session together with its ordered turns, as loaded from the store."""
    session: Session
    turns: List[ConversationTurn] = Field(default_factory=list)

    @property
    def next_turn_index(self) -> int:
        return len(self.turns)

    def user_turns(self) -> List[ConversationTurn]:
        return [turn for turn in self.turns if turn.role == Role.USER]


class SessionPatch(BaseModel):
    """Annotation-only update proposed by the legitimacy handler."""
    model_config = ConfigDict(frozen=True)

    userClaimedLegitimate: bool = False


# ═══════════════════════════════════════════════════════════════════════
# TURN RESULT — closed structure handed to external collaborators
# ═══════════════════════════════════════════════════════════════════════

class TurnResult(BaseModel):
    """Outcome of processing one inbound message. Every field always present."""
    model_config = ConfigDict(frozen=True)

    sessionId: str
    turnIndex: int
    confidence: float
    isScam: bool
    confidenceLocked: bool
    phase: EngagementPhase
    status: SessionStatus
    behaviorDirective: BehaviorDirective
    policy: BehaviorPolicy
    detectedCategories: List[ScamCategory]
    scamArchetype: Optional[Archetype]
    emotion: Emotion
    intensity: float
    pressureVelocity: float
    pressureLabel: str              # fast / medium / slow
    extractedIntel: ExtractedIntel
    sessionIntel: ExtractedIntel
    userClaimedLegitimate: bool
    targetAsset: Optional[TargetAsset]
    reasoning: List[str]
    safetyAdvice: List[str]
    responseHint: ResponseHint
    scores: ScoreBreakdown


# ═══════════════════════════════════════════════════════════════════════
# HTTP PAYLOADS — used by the FastAPI shim only
# ═══════════════════════════════════════════════════════════════════════

class Message(BaseModel):
    """A single chat message as posted by a client."""
    model_config = ConfigDict(extra="ignore")

    sender: Optional[str] = Field(default="scammer")
    text: str = Field(...)
    timestamp: Optional[Union[str, int]] = Field(default=None)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, value):
        """Normalize epoch int timestamps to strings."""
        if isinstance(value, (int, float)):
            return str(int(value))
        return value


class HoneypotRequest(BaseModel):
    """Incoming POST /honeypot payload."""
    model_config = ConfigDict(extra="ignore")

    sessionId: str = Field(...)
    message: Message = Field(...)


class ReplyRequest(BaseModel):
    """Agent reply composed externally, recorded into the session transcript."""
    model_config = ConfigDict(extra="ignore")

    text: str = Field(...)


class SessionView(BaseModel):
    """Read-only session state returned by GET /sessions/{sessionId}."""
    session: Session
    turnCount: int
