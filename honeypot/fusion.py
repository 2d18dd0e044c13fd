"""fusion.py — Confidence Fusion & Decay Guard
==============================================

Combines the five signal scores into a session confidence and enforces the
ratchet rules:

    raw        = clip(weights · scores, 0, 1)
    confidence = max(raw, prior)                  (never decreases)
    confidence = prior          if already locked (pinned exactly)
    is_scam    = prior_is_scam or confidence >= detection_threshold
    locked     = prior_locked  or confidence >= lock_threshold

Raw fusion always runs, even when locked, so the per-turn breakdown keeps
the unguarded value for debugging.
"""

from typing import NamedTuple, Sequence

import numpy as np

from honeypot.config import EngineConfig


class FusionOutcome(NamedTuple):
    raw: float
    confidence: float
    is_scam: bool
    locked: bool


class ConfidenceFusion:

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self._weights = np.asarray(list(config.weights.values()), dtype=float)

    def raw_confidence(self, scores: Sequence[float]) -> float:
        """Weighted sum of (pattern, behavior, context, urgency, intel)."""
        vector = np.clip(np.asarray(scores, dtype=float), 0.0, 1.0)
        if vector.shape != self._weights.shape:
            raise ValueError(f"expected {self._weights.size} signal scores, got {vector.size}")
        return round(float(np.clip(self._weights @ vector, 0.0, 1.0)), 4)

    def fuse(
        self,
        scores: Sequence[float],
        prior_confidence: float = 0.0,
        prior_is_scam: bool = False,
        confidence_locked: bool = False,
    ) -> FusionOutcome:
        raw = self.raw_confidence(scores)

        if confidence_locked:
            confidence = prior_confidence
        else:
            confidence = max(raw, prior_confidence)

        is_scam = prior_is_scam or confidence >= self.config.detection_threshold
        locked = confidence_locked or confidence >= self.config.lock_threshold
        return FusionOutcome(raw, confidence, is_scam, locked)
