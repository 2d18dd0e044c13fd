"""velocity.py — Pressure Velocity Tracker
==========================================

Measures how fast the sender escalates time pressure across turns.

    velocity = urgency(current) - mean(urgency over the trailing window)

The trailing window is the last ``velocity_window`` user turns (default 1,
i.e. the immediately preceding user turn). The first user turn has
velocity 0.0. Positive values mean escalating coercion; negative values
mean pressure is easing. Velocity is reported and can force an earlier phase
advance, but it never lowers confidence.
"""

from typing import Sequence

import numpy as np

from honeypot.config import EngineConfig
from honeypot.models import ConversationTurn, Role


class PressureVelocityTracker:
    """Stateless; everything it needs arrives with the session history."""

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def update(self, history: Sequence[ConversationTurn], new_urgency: float) -> float:
        """Signed urgency change of the new turn against the trailing window."""
        prior = [
            turn.scores.urgencyScore
            for turn in history
            if turn.role == Role.USER and turn.scores is not None
        ]
        if not prior:
            return 0.0
        window = np.asarray(prior[-self.config.velocity_window:], dtype=float)
        return round(float(new_urgency - window.mean()), 4)

    def history_velocities(self, history: Sequence[ConversationTurn]) -> list:
        """Velocities already recorded on earlier user turns, oldest first."""
        return [
            turn.scores.pressureVelocity
            for turn in history
            if turn.role == Role.USER and turn.scores is not None
        ]

    def is_sustained_spike(self, velocities: Sequence[float]) -> bool:
        """True when the last N velocities all rise and add up to an extreme jump.

        ``N`` is ``spike_sustain_turns``; a single turn can never qualify when
        N > 1, so one noisy message cannot end the engagement on its own.
        """
        span = self.config.spike_sustain_turns
        if len(velocities) < span:
            return False
        recent = np.asarray(velocities[-span:], dtype=float)
        return bool(np.all(recent > 0.0) and recent.sum() >= self.config.extreme_velocity)

    @staticmethod
    def label(velocity: float) -> str:
        """Coarse escalation label for reporting."""
        if velocity >= 0.5:
            return "fast"
        if velocity > 0.2:
            return "medium"
        return "slow"
