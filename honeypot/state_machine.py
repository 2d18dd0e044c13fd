"""
state_machine.py — Engagement Phase State Machine
==================================================

Owns every write to Session state. One call to ``advance`` processes one
inbound message against the prior snapshot and returns the new session, the
turn to append and the closed TurnResult; nothing is persisted here.

Pipeline per message:
    1. Sanitize (strip, truncate) the text
    2. Signal scorers + intel extractor + emotion classifier
    3. Pressure velocity from the new urgency score
    4. Confidence fusion + decay guard
    5. Phase transition guards → behavior directive (FSM table)
    6. Legitimacy handler (annotation) + veto (ratchets re-asserted)
    7. Archetype classification over accumulated category weights

Phases (forward only):

    early ──► mid ──► late ──► final (terminal, freeze mode)

    early  PASSIVE_CURIOUS         draw out more text, reveal nothing
    mid    PROBE_FOR_INTEL         clarifying questions that invite intel
    late   STALL_AND_DOUBT         friction, slow compliance
    final  REFUSE_AND_ADVISE_ONLY  no questions; refusal + safety advice only

Transition guards (pure predicates, any satisfied guard may only advance):
    confidence >= phase_mid/late/final_threshold
    scam session and user turn ordinal >= phase_mid/late/final_turn
    scam session with a sustained extreme pressure-velocity spike → final
    scam session holding a UPI id, a phone number or wrap_up_min_urls links,
        once the user turn ordinal reaches wrap_up_turn → final

Entering final also marks the session ``terminated``. A terminated session
still accepts messages; it stays frozen and keeps its ratchets.
"""

import logging
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from honeypot.analysis import build_reasoning, build_safety_advice, identify_target_asset
from honeypot.archetype import ArchetypeClassifier
from honeypot.config import EngineConfig
from honeypot.emotion import EmotionClassifier
from honeypot.extractor import IntelExtractor
from honeypot.fusion import ConfidenceFusion
from honeypot.legitimacy import LegitimacyOverrideHandler
from honeypot.models import (
    BehaviorDirective,
    BehaviorPolicy,
    ConversationTurn,
    EngagementPhase,
    ExtractedIntel,
    Role,
    ScamCategory,
    ScoreBreakdown,
    Session,
    SessionSnapshot,
    SessionStatus,
    TurnResult,
    utc_now,
)
from honeypot.scorers import SignalScorers
from honeypot.velocity import PressureVelocityTracker

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
# FSM TABLE — phase → behavior policy
# ═══════════════════════════════════════════════════════════════════════

PHASE_POLICIES: Dict[EngagementPhase, BehaviorPolicy] = {
    EngagementPhase.EARLY: BehaviorPolicy(
        directive=BehaviorDirective.PASSIVE_CURIOUS,
        allowQuestions=True, allowEngagement=True, baitAllowed=True,
        tone="curious",
        description="Draw out more text without revealing suspicion",
    ),
    EngagementPhase.MID: BehaviorPolicy(
        directive=BehaviorDirective.PROBE_FOR_INTEL,
        allowQuestions=True, allowEngagement=True, baitAllowed=True,
        tone="cautious",
        description="Ask clarifying questions that invite payment handles, numbers and links",
    ),
    EngagementPhase.LATE: BehaviorPolicy(
        directive=BehaviorDirective.STALL_AND_DOUBT,
        allowQuestions=True, allowEngagement=True, baitAllowed=False,
        tone="hesitant",
        description="Introduce friction and doubt, slow down compliance",
    ),
    EngagementPhase.FINAL: BehaviorPolicy(
        directive=BehaviorDirective.REFUSE_AND_ADVISE_ONLY,
        allowQuestions=False, allowEngagement=False, baitAllowed=False,
        tone="refusal",
        description="Freeze mode: refuse and give safety advice only, ask nothing",
    ),
}


def policy_for(phase: EngagementPhase) -> BehaviorPolicy:
    return PHASE_POLICIES[phase]


# ═══════════════════════════════════════════════════════════════════════
# TRANSITION GUARDS — pure predicates over the turn's guard context
# ═══════════════════════════════════════════════════════════════════════

class GuardContext(NamedTuple):
    confidence: float
    user_turn: int          # 0-based ordinal of this user message
    sustained_spike: bool   # pressure velocity spiked over consecutive turns
    is_scam: bool
    config: EngineConfig
    intel: ExtractedIntel = ExtractedIntel()   # session intel including this turn


def _confidence_at_least(attr: str) -> Callable[[GuardContext], bool]:
    def guard(ctx: GuardContext) -> bool:
        return ctx.confidence >= getattr(ctx.config, attr)
    guard.__name__ = f"confidence_at_least_{attr}"
    return guard


def _scam_turn_at_least(attr: str) -> Callable[[GuardContext], bool]:
    def guard(ctx: GuardContext) -> bool:
        return ctx.is_scam and ctx.user_turn >= getattr(ctx.config, attr)
    guard.__name__ = f"scam_turn_at_least_{attr}"
    return guard


def sustained_pressure_spike(ctx: GuardContext) -> bool:
    return ctx.is_scam and ctx.sustained_spike


def intel_gathered_wrap_up(ctx: GuardContext) -> bool:
    """Enough has been harvested: a payment handle, a number, or several links."""
    intel = ctx.intel
    gathered = bool(intel.upiIds or intel.phoneNumbers) or len(intel.urls) >= ctx.config.wrap_up_min_urls
    return ctx.is_scam and gathered and ctx.user_turn >= ctx.config.wrap_up_turn


TRANSITION_GUARDS: Tuple[Tuple[EngagementPhase, Callable[[GuardContext], bool]], ...] = (
    (EngagementPhase.MID, _confidence_at_least("phase_mid_threshold")),
    (EngagementPhase.MID, _scam_turn_at_least("phase_mid_turn")),
    (EngagementPhase.LATE, _confidence_at_least("phase_late_threshold")),
    (EngagementPhase.LATE, _scam_turn_at_least("phase_late_turn")),
    (EngagementPhase.FINAL, _confidence_at_least("phase_final_threshold")),
    (EngagementPhase.FINAL, _scam_turn_at_least("phase_final_turn")),
    (EngagementPhase.FINAL, sustained_pressure_spike),
    (EngagementPhase.FINAL, intel_gathered_wrap_up),
)


def next_phase(current: EngagementPhase, ctx: GuardContext) -> EngagementPhase:
    """Furthest phase reachable from ``current``; never moves backwards."""
    targets = [target for target, guard in TRANSITION_GUARDS if guard(ctx)]
    return EngagementPhase.latest(current, *targets)


class TurnOutcome(NamedTuple):
    session: Session
    turn: ConversationTurn
    result: TurnResult


class EngagementStateMachine:
    """Sole writer of Session fields. Every collaborator returns values only."""

    def __init__(
        self,
        config: EngineConfig,
        scorers: Optional[SignalScorers] = None,
        extractor: Optional[IntelExtractor] = None,
        emotion: Optional[EmotionClassifier] = None,
        velocity: Optional[PressureVelocityTracker] = None,
        fusion: Optional[ConfidenceFusion] = None,
        legitimacy: Optional[LegitimacyOverrideHandler] = None,
        archetype: Optional[ArchetypeClassifier] = None,
    ) -> None:
        self.config = config
        self.extractor = extractor or IntelExtractor()
        self.scorers = scorers or SignalScorers(config, extractor=self.extractor)
        self.emotion = emotion or EmotionClassifier(config)
        self.velocity = velocity or PressureVelocityTracker(config)
        self.fusion = fusion or ConfidenceFusion(config)
        self.legitimacy = legitimacy or LegitimacyOverrideHandler()
        self.archetype = archetype or ArchetypeClassifier(config)

    @staticmethod
    def new_session(session_id: str) -> Session:
        """Defaults for an unseen session id: early, confidence 0, not a scam."""
        return Session(sessionId=session_id)

    def advance(
        self,
        session_id: str,
        text: str,
        prior: Optional[SessionSnapshot] = None,
    ) -> TurnOutcome:
        """Process one inbound user message against the prior snapshot."""
        snapshot = prior or SessionSnapshot(session=self.new_session(session_id))
        session = snapshot.session
        history = snapshot.turns
        tag = session_id[:8]

        cleaned = self.scorers.sanitize(text)

        # ── Signals ──────────────────────────────────────────────────
        layers = self.scorers.score_all(cleaned, history)
        intel = self.extractor.extract(cleaned)
        emotion, intensity = self.emotion.classify(cleaned, session.emotionHistory)
        session_intel = session.extractedIntel.union(intel)
        velocity = self.velocity.update(history, layers.urgency.score)

        # ── Fusion + decay guard ─────────────────────────────────────
        fused = self.fusion.fuse(
            layers.vector(),
            prior_confidence=session.confidence,
            prior_is_scam=session.isScam,
            confidence_locked=session.confidenceLocked,
        )

        # ── Phase transition ─────────────────────────────────────────
        velocities = self.velocity.history_velocities(history) + [velocity]
        ctx = GuardContext(
            confidence=fused.confidence,
            user_turn=len(snapshot.user_turns()),
            sustained_spike=self.velocity.is_sustained_spike(velocities),
            is_scam=fused.is_scam,
            config=self.config,
            intel=session_intel,
        )
        phase = next_phase(session.engagementPhase, ctx)

        # ── Category accumulation (insertion order = first detection) ─
        turn_categories = layers.categories()
        category_weights: Dict[ScamCategory, float] = dict(session.categoryWeights)
        for category, weight in turn_categories.items():
            category_weights[category] = round(category_weights.get(category, 0.0) + weight, 4)

        emotion_history = (list(session.emotionHistory) + [emotion])[-self.config.emotion_history_size:]

        # ── Legitimacy annotation, then the veto runs last ───────────
        patch = self.legitimacy.handle(cleaned, session)
        proposed = session.model_copy(update={
            "confidence": fused.confidence,
            "isScam": fused.is_scam,
            "confidenceLocked": fused.locked,
            "engagementPhase": phase,
            "userClaimedLegitimate": patch.userClaimedLegitimate,
            "categoryWeights": category_weights,
            "extractedIntel": session_intel,
            "emotionHistory": emotion_history,
            "updatedAt": utc_now(),
        })
        updated = self.legitimacy.veto(session, proposed)

        status = updated.status
        if updated.engagementPhase == EngagementPhase.FINAL and status == SessionStatus.ACTIVE:
            status = SessionStatus.TERMINATED
        updated = updated.model_copy(update={
            "scamArchetype": self.archetype.classify(updated.categoryWeights),
            "status": status,
        })

        self._log_transitions(tag, session, updated)

        # ── Turn record + result ─────────────────────────────────────
        detected = list(turn_categories)
        breakdown = ScoreBreakdown(
            patternScore=layers.pattern.score,
            behaviorScore=layers.behavior.score,
            contextScore=layers.context.score,
            urgencyScore=layers.urgency.score,
            intelScore=layers.intel.score,
            rawConfidence=fused.raw,
            fusedConfidence=updated.confidence,
            pressureVelocity=velocity,
            detectedEmotion=emotion,
            intensity=intensity,
            detectedCategories=detected,
        )
        turn = ConversationTurn(
            turnIndex=snapshot.next_turn_index,
            role=Role.USER,
            text=cleaned,
            scores=breakdown,
        )
        policy = policy_for(updated.engagementPhase)
        result = TurnResult(
            sessionId=session_id,
            turnIndex=turn.turnIndex,
            confidence=updated.confidence,
            isScam=updated.isScam,
            confidenceLocked=updated.confidenceLocked,
            phase=updated.engagementPhase,
            status=updated.status,
            behaviorDirective=policy.directive,
            policy=policy,
            detectedCategories=detected,
            scamArchetype=updated.scamArchetype,
            emotion=emotion,
            intensity=intensity,
            pressureVelocity=velocity,
            pressureLabel=self.velocity.label(velocity),
            extractedIntel=intel,
            sessionIntel=updated.extractedIntel,
            userClaimedLegitimate=updated.userClaimedLegitimate,
            targetAsset=identify_target_asset(cleaned),
            reasoning=build_reasoning(
                layers.signals(), detected, self.extractor.scam_phrases(cleaned),
            ),
            safetyAdvice=build_safety_advice(cleaned, updated.isScam),
            responseHint=self.emotion.response_hint(emotion, updated.engagementPhase),
            scores=breakdown,
        )
        return TurnOutcome(session=updated, turn=turn, result=result)

    def agent_turn(self, snapshot: SessionSnapshot, text: str) -> ConversationTurn:
        """Build the next agent turn; the session itself is unchanged."""
        return ConversationTurn(
            turnIndex=snapshot.next_turn_index,
            role=Role.AGENT,
            text=self.scorers.sanitize(text),
        )

    @staticmethod
    def _log_transitions(tag: str, before: Session, after: Session) -> None:
        if after.isScam and not before.isScam:
            logger.info(f"[{tag}] SCAM CONFIRMED confidence={after.confidence:.3f}")
        if after.confidenceLocked and not before.confidenceLocked:
            logger.info(f"[{tag}] CONFIDENCE LOCKED at {after.confidence:.3f}")
        if after.engagementPhase != before.engagementPhase:
            logger.info(
                f"[{tag}] PHASE {before.engagementPhase.value} -> {after.engagementPhase.value}"
            )
            if after.engagementPhase == EngagementPhase.FINAL:
                logger.info(f"[{tag}] FREEZE MODE engaged, session {after.status.value}")
