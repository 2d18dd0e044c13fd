"""In-memory store and session lock tests."""

import gc
from datetime import datetime, timedelta, timezone

import pytest

from conftest import agent_turn, user_turn
from honeypot.errors import SessionBusyError
from honeypot.models import Session
from honeypot.store import InMemorySessionStore, SessionLockRegistry


def test_unknown_session_loads_as_none():
    assert InMemorySessionStore().load("missing") is None


def test_round_trip_keeps_turn_order():
    store = InMemorySessionStore()
    store.commit(Session(sessionId="s1", confidence=0.5), user_turn(0, "Send OTP"))
    store.append_turn("s1", agent_turn(1))

    snapshot = store.load("s1")
    assert snapshot.session.confidence == 0.5
    assert [turn.turnIndex for turn in snapshot.turns] == [0, 1]
    assert snapshot.next_turn_index == 2


def test_commit_replaces_session_record():
    store = InMemorySessionStore()
    store.commit(Session(sessionId="s1", confidence=0.4), user_turn(0))
    store.commit(Session(sessionId="s1", confidence=0.7), user_turn(1))
    snapshot = store.load("s1")
    assert snapshot.session.confidence == 0.7
    assert len(snapshot.turns) == 2


def test_out_of_sequence_turn_rejected():
    store = InMemorySessionStore()
    store.commit(Session(sessionId="s1"), user_turn(0))
    with pytest.raises(ValueError):
        store.append_turn("s1", user_turn(2))


def test_rejected_commit_stores_nothing():
    store = InMemorySessionStore()
    store.commit(Session(sessionId="s1", confidence=0.4), user_turn(0))
    with pytest.raises(ValueError):
        store.commit(Session(sessionId="s1", confidence=0.9), user_turn(5))

    snapshot = store.load("s1")
    assert snapshot.session.confidence == 0.4
    assert len(snapshot.turns) == 1


def test_reply_needs_existing_session():
    store = InMemorySessionStore()
    with pytest.raises(KeyError):
        store.append_turn("ghost", agent_turn(0))
    assert store.load("ghost") is None


def test_expired_sessions_are_purged():
    store = InMemorySessionStore(expiry_seconds=60)
    stale = datetime.now(timezone.utc) - timedelta(hours=2)
    store.commit(Session(sessionId="old", updatedAt=stale), user_turn(0))
    store.commit(Session(sessionId="fresh"), user_turn(0))
    store._last_cleanup = stale

    assert store.load("old") is None
    assert store.load("fresh") is not None
    assert store.get_session_count() == 1


def test_cleanup_session_drops_turns():
    store = InMemorySessionStore()
    store.commit(Session(sessionId="s1"), user_turn(0))
    store.cleanup_session("s1")
    assert store.load("s1") is None
    store.commit(Session(sessionId="s1"), user_turn(0))


def test_lock_is_per_session():
    locks = SessionLockRegistry()
    with locks.hold("a", 0):
        with locks.hold("b", 0):
            pass
        with pytest.raises(SessionBusyError):
            with locks.hold("a", 0):
                pass
    with locks.hold("a", 0):
        pass


def test_idle_locks_are_released():
    locks = SessionLockRegistry()
    with locks.hold("a", 0):
        assert len(locks) == 1
    gc.collect()
    assert len(locks) == 0


def test_lock_registry_does_not_grow_with_sessions(engine):
    for n in range(200):
        engine.process_turn(f"many-{n}", "Send OTP")
        engine.store.cleanup_session(f"many-{n}")
    gc.collect()
    assert len(engine.locks) == 0
    assert engine.store.get_session_count() == 0
