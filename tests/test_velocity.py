"""Pressure velocity tests — first turn, windows, sustained spikes."""

import pytest

from conftest import agent_turn, user_turn
from honeypot.config import EngineConfig
from honeypot.velocity import PressureVelocityTracker


def _tracker(**overrides) -> PressureVelocityTracker:
    return PressureVelocityTracker(EngineConfig(**overrides))


def test_first_user_turn_has_zero_velocity():
    assert _tracker().update([], 0.7) == 0.0


def test_velocity_against_previous_user_turn():
    tracker = _tracker()
    assert tracker.update([user_turn(0, urgency=0.35)], 0.7) == pytest.approx(0.35)
    assert tracker.update([user_turn(0, urgency=0.7)], 0.0) == pytest.approx(-0.7)


def test_wider_window_averages_prior_urgency():
    history = [user_turn(0, urgency=0.2), user_turn(1, urgency=0.4)]
    assert _tracker(velocity_window=2).update(history, 0.6) == pytest.approx(0.3)


def test_agent_turns_are_ignored():
    history = [user_turn(0, urgency=0.35), agent_turn(1)]
    assert _tracker().update(history, 0.7) == pytest.approx(0.35)


def test_history_velocities_skip_agent_turns():
    history = [user_turn(0, velocity=0.0), agent_turn(1), user_turn(2, velocity=0.35)]
    assert _tracker().history_velocities(history) == [0.0, 0.35]


def test_sustained_spike_needs_consecutive_rises():
    tracker = _tracker()
    assert tracker.is_sustained_spike([0.0, 0.5, 0.4]) is True
    assert tracker.is_sustained_spike([0.9]) is False
    assert tracker.is_sustained_spike([0.9, -0.1]) is False
    assert tracker.is_sustained_spike([0.3, 0.3]) is False


def test_velocity_labels():
    assert PressureVelocityTracker.label(0.5) == "fast"
    assert PressureVelocityTracker.label(0.3) == "medium"
    assert PressureVelocityTracker.label(0.2) == "slow"
    assert PressureVelocityTracker.label(-0.7) == "slow"
