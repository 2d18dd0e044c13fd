"""Engine boundary tests — end-to-end scenarios, ratchets, errors, concurrency."""

import threading

import pytest

from honeypot.config import EngineConfig
from honeypot.engine import HoneypotEngine
from honeypot.errors import (
    ErrorKind,
    InvalidInputError,
    PersistenceUnavailableError,
    SessionBusyError,
    UnknownSessionError,
)
from honeypot.models import BehaviorDirective, EngagementPhase, Role, ScamCategory
from honeypot.store import InMemorySessionStore


HEAVY_SCAM = (
    "URGENT: your SBI account will be blocked today. Send OTP immediately to "
    "verify@paytm or call 9876543210 or open http://sbi-verify.xyz/login"
)


def _drive_to_final(engine, session_id):
    for _ in range(10):
        result = engine.process_turn(session_id, HEAVY_SCAM)
        if result.phase == EngagementPhase.FINAL:
            return result
    raise AssertionError("session never reached final")


class _BrokenStore(InMemorySessionStore):

    def __init__(self, fail_on: str):
        super().__init__()
        self.fail_on = fail_on

    def load(self, session_id):
        if self.fail_on == "load":
            raise RuntimeError("connection refused")
        return super().load(session_id)

    def commit(self, session, turn):
        if self.fail_on == "commit":
            raise RuntimeError("disk full")
        super().commit(session, turn)


class _FlakyStore(InMemorySessionStore):
    """Fails exactly one commit, the `fail_at`-th (1-based)."""

    def __init__(self, fail_at: int):
        super().__init__()
        self.fail_at = fail_at
        self.commits = 0

    def commit(self, session, turn):
        self.commits += 1
        if self.commits == self.fail_at:
            raise RuntimeError("write timeout")
        super().commit(session, turn)


# --- scenarios -------------------------------------------------------------

def test_otp_request_on_fresh_session(engine):
    result = engine.process_turn("scenario-a", "Send OTP to verify your account")
    assert result.isScam is True
    assert result.phase.rank >= EngagementPhase.MID.rank
    assert ScamCategory.CREDENTIAL_REQUEST in result.detectedCategories


def test_benign_follow_ups_keep_verdict_and_confidence(engine):
    first = engine.process_turn("scenario-b", "Send me your OTP now")
    second = engine.process_turn("scenario-b", "Thank you")
    third = engine.process_turn("scenario-b", "Have a nice day")
    assert first.isScam and second.isScam and third.isScam
    assert third.confidence >= second.confidence >= first.confidence


def test_greeting_is_not_a_scam(engine):
    result = engine.process_turn("scenario-c", "Hello, good morning!")
    assert result.isScam is False
    assert result.confidence < engine.config.detection_threshold
    assert result.detectedCategories == []
    assert result.behaviorDirective == BehaviorDirective.PASSIVE_CURIOUS
    assert result.scamArchetype is None


def test_upi_handle_reported(engine):
    result = engine.process_turn("scenario-d", "Pay the fee to verify@paytm")
    assert "verify@paytm" in result.extractedIntel.upiIds
    assert "verify@paytm" in result.sessionIntel.upiIds


def test_legitimacy_claim_after_final_changes_nothing(engine):
    final = _drive_to_final(engine, "scenario-e")
    result = engine.process_turn("scenario-e", "I am not a scammer, this is legitimate")
    assert result.phase == EngagementPhase.FINAL
    assert result.isScam is True
    assert result.confidence == final.confidence
    assert result.behaviorDirective == BehaviorDirective.REFUSE_AND_ADVISE_ONLY
    assert result.userClaimedLegitimate is True
    assert result.policy.allowQuestions is False


# --- ratchets --------------------------------------------------------------

def test_confidence_and_phase_monotonic_over_script(engine):
    script = [
        "Hello sir",
        "Your account has a problem",
        "Send OTP to verify your account",
        "ok",
        "This is not a scam, trust me",
        "Have a nice day",
    ]
    confidences, ranks = [], []
    for text in script:
        result = engine.process_turn("monotonic", text)
        confidences.append(result.confidence)
        ranks.append(result.phase.rank)
    assert confidences == sorted(confidences)
    assert ranks == sorted(ranks)


def test_locked_confidence_is_pinned(engine):
    first = _drive_to_final(engine, "pinned")
    assert first.confidenceLocked is True
    for text in ("Send OTP now", "Hello", "you won a lottery, pay the fee"):
        assert engine.process_turn("pinned", text).confidence == first.confidence


def test_turn_indices_contiguous_with_replies(engine):
    engine.process_turn("indices", "Send OTP")
    engine.record_reply("indices", "Which OTP?")
    engine.process_turn("indices", "The one we sent you")
    engine.record_reply("indices", "I did not get anything")

    snapshot = engine.get_session("indices")
    assert [turn.turnIndex for turn in snapshot.turns] == [0, 1, 2, 3]
    assert [turn.role for turn in snapshot.turns] == [Role.USER, Role.AGENT, Role.USER, Role.AGENT]


def test_replies_do_not_touch_session_state(engine):
    before = engine.process_turn("reply-state", "Send OTP to verify your account")
    engine.record_reply("reply-state", "This is not a scam, trust me")
    session = engine.get_session("reply-state").session
    assert session.confidence == before.confidence
    assert session.userClaimedLegitimate is False


# --- early termination -----------------------------------------------------

def test_sustained_pressure_spike_ends_engagement(engine):
    first = engine.process_turn("spike", "Send OTP to verify your account")
    second = engine.process_turn("spike", "Reply now")
    third = engine.process_turn("spike", "URGENT! Do it immediately, right now")

    assert first.phase != EngagementPhase.FINAL
    assert second.phase != EngagementPhase.FINAL
    assert second.pressureVelocity == pytest.approx(0.35)
    assert third.pressureVelocity == pytest.approx(0.65)
    assert third.pressureLabel == "fast"
    assert third.phase == EngagementPhase.FINAL
    assert third.confidence < engine.config.phase_final_threshold
    assert engine.get_session("spike").session.status.value == "terminated"


def _wrap_up_script(engine, session_id, second_message):
    script = ["Send OTP to verify your account", second_message] + ["ok"] * 5
    return [engine.process_turn(session_id, text) for text in script]


def test_gathered_intel_wraps_up_at_turn_six(engine):
    results = _wrap_up_script(engine, "wrap-up", "Pay the fee to verify@paytm")
    assert all(result.phase != EngagementPhase.FINAL for result in results[:6])
    assert results[6].phase == EngagementPhase.FINAL
    assert results[6].confidence < engine.config.phase_final_threshold


def test_no_wrap_up_without_intel(engine):
    results = _wrap_up_script(engine, "no-intel", "Pay the fee now")
    assert results[6].phase != EngagementPhase.FINAL


# --- errors ----------------------------------------------------------------

@pytest.mark.parametrize("text", ["", "   ", None, 42])
def test_invalid_text_rejected_before_state_access(engine, text):
    with pytest.raises(InvalidInputError) as excinfo:
        engine.process_turn("invalid", text)
    assert excinfo.value.kind == ErrorKind.INVALID_INPUT
    assert engine.store.load("invalid") is None


def test_invalid_session_id_rejected(engine):
    with pytest.raises(InvalidInputError):
        engine.process_turn("  ", "Send OTP")


def test_busy_session_fails_fast():
    engine = HoneypotEngine(InMemorySessionStore(), EngineConfig(session_lock_timeout=0))
    with engine.locks.hold("busy", 0):
        with pytest.raises(SessionBusyError) as excinfo:
            engine.process_turn("busy", "Send OTP")
    assert excinfo.value.retryable is True
    assert engine.store.load("busy") is None


def test_store_failure_on_load_is_surfaced():
    engine = HoneypotEngine(_BrokenStore("load"), EngineConfig())
    with pytest.raises(PersistenceUnavailableError) as excinfo:
        engine.process_turn("broken", "Send OTP")
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert excinfo.value.operation == "load"


def test_store_failure_on_commit_is_surfaced():
    engine = HoneypotEngine(_BrokenStore("commit"), EngineConfig())
    with pytest.raises(PersistenceUnavailableError) as excinfo:
        engine.process_turn("broken", "Send OTP")
    assert excinfo.value.operation == "commit"
    assert excinfo.value.retryable is True
    assert engine.store.load("broken") is None
    assert excinfo.value.to_response()["error"]["kind"] == "PersistenceUnavailable"


def test_failed_commit_leaves_session_and_transcript_in_step():
    engine = HoneypotEngine(_FlakyStore(fail_at=2), EngineConfig())
    engine.process_turn("flaky", "Hello there")
    with pytest.raises(PersistenceUnavailableError):
        engine.process_turn("flaky", "URGENT send OTP now, pay the fee to verify@paytm")

    snapshot = engine.get_session("flaky")
    assert len(snapshot.turns) == 1
    assert snapshot.session.confidence == snapshot.turns[-1].scores.fusedConfidence
    assert snapshot.session.extractedIntel.upiIds == frozenset()

    engine.process_turn("flaky", "Have a nice day")
    snapshot = engine.get_session("flaky")
    fused = [turn.scores.fusedConfidence for turn in snapshot.user_turns()]
    assert fused == sorted(fused)
    assert snapshot.session.confidence == fused[-1]


def test_retry_after_failed_commit_is_processed_once():
    engine = HoneypotEngine(_FlakyStore(fail_at=2), EngineConfig())
    engine.process_turn("retry", "Hello there")
    message = "URGENT send OTP now, pay the fee to verify@paytm"
    with pytest.raises(PersistenceUnavailableError):
        engine.process_turn("retry", message)
    result = engine.process_turn("retry", message)
    engine.process_turn("retry", "Have a nice day")

    snapshot = engine.get_session("retry")
    assert result.turnIndex == 1
    assert [turn.turnIndex for turn in snapshot.turns] == [0, 1, 2]
    assert snapshot.session.isScam is True
    assert snapshot.session.confidence >= result.confidence
    assert "verify@paytm" in snapshot.session.extractedIntel.upiIds


def test_unknown_session_lookups(engine):
    with pytest.raises(UnknownSessionError):
        engine.get_session("never-seen")
    with pytest.raises(UnknownSessionError):
        engine.record_reply("never-seen", "hello?")


# --- concurrency -----------------------------------------------------------

def test_concurrent_turns_on_one_session_are_serialized(engine):
    results = []
    errors = []

    def worker():
        try:
            results.append(engine.process_turn("shared", "Send OTP to verify your account"))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert sorted(result.turnIndex for result in results) == list(range(8))
    assert len(engine.get_session("shared").turns) == 8


def test_independent_sessions_do_not_share_state(engine):
    engine.process_turn("alpha", HEAVY_SCAM)
    result = engine.process_turn("beta", "Hello, good morning!")
    assert result.isScam is False
    assert result.turnIndex == 0
