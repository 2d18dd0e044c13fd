"""config.py — Engine Configuration
===================================

Every weight and threshold used by the scorers, the fusion guard and the
engagement state machine lives in one frozen ``EngineConfig`` object that is
injected into each component at construction time.

Values come from environment variables (optionally via a ``.env`` file loaded
with python-dotenv). Every field can be overridden with ``HONEYPOT_<FIELD>``:

    HONEYPOT_DETECTION_THRESHOLD=0.3
    HONEYPOT_LOCK_THRESHOLD=0.6
    HONEYPOT_PATTERN_WEIGHT=0.35

Validation rules:
    - The five fusion weights must sum to 1.0
    - lock_threshold must be strictly greater than detection_threshold
    - Phase confidence thresholds must be strictly increasing (mid < late < final)
    - Phase turn thresholds must be strictly increasing
"""

import logging
import os
from typing import Dict

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "HONEYPOT_"

# Absolute tolerance when checking that the fusion weights sum to 1.0
_WEIGHT_SUM_TOLERANCE = 1e-6


class EngineConfig(BaseModel):
    """Immutable tuning knobs for the scoring and engagement core."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # ── Fusion weights (must sum to 1.0) ─────────────────────────────
    pattern_weight: float = Field(default=0.35, ge=0.0, le=1.0)
    behavior_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    context_weight: float = Field(default=0.20, ge=0.0, le=1.0)
    urgency_weight: float = Field(default=0.10, ge=0.0, le=1.0)
    intel_weight: float = Field(default=0.15, ge=0.0, le=1.0)

    # ── Verdict thresholds ───────────────────────────────────────────
    detection_threshold: float = Field(default=0.30, gt=0.0, le=1.0)
    lock_threshold: float = Field(default=0.60, gt=0.0, le=1.0)

    # ── Phase advancement (confidence) ───────────────────────────────
    phase_mid_threshold: float = Field(default=0.30, gt=0.0, le=1.0)
    phase_late_threshold: float = Field(default=0.55, gt=0.0, le=1.0)
    phase_final_threshold: float = Field(default=0.85, gt=0.0, le=1.0)

    # ── Phase advancement (0-based user turn ordinal, scam sessions only) ──
    phase_mid_turn: int = Field(default=2, ge=0)
    phase_late_turn: int = Field(default=5, ge=0)
    phase_final_turn: int = Field(default=8, ge=0)

    # ── Wrap-up once intel is gathered (scam sessions only) ──────────
    wrap_up_turn: int = Field(default=6, ge=0)
    wrap_up_min_urls: int = Field(default=2, ge=1)

    # ── Pressure velocity ────────────────────────────────────────────
    velocity_window: int = Field(default=1, ge=1)
    extreme_velocity: float = Field(default=0.80, gt=0.0)
    spike_sustain_turns: int = Field(default=2, ge=1)

    # ── Scorer tuning ────────────────────────────────────────────────
    pattern_saturation: float = Field(default=0.60, gt=0.0)
    urgency_step: float = Field(default=0.35, gt=0.0, le=1.0)
    max_message_chars: int = Field(default=5000, ge=1)

    # ── Emotion classifier ───────────────────────────────────────────
    emotion_min_score: float = Field(default=0.40, ge=0.0)
    emotion_density_scale: float = Field(default=4.0, gt=0.0)
    emotion_history_size: int = Field(default=10, ge=1)
    emotion_repeat_window: int = Field(default=3, ge=1)
    emotion_repeat_boost: float = Field(default=0.25, ge=0.0, le=1.0)

    # ── Archetype classifier ─────────────────────────────────────────
    archetype_dominance_share: float = Field(default=0.50, gt=0.0, le=1.0)

    # ── Session handling ─────────────────────────────────────────────
    session_lock_timeout: float = Field(default=5.0)
    session_expiry_seconds: int = Field(default=3600, ge=1)

    @field_validator("session_lock_timeout")
    @classmethod
    def _check_lock_timeout(cls, value: float) -> float:
        """Negative means wait forever; zero means fail fast."""
        if value < 0:
            return -1.0
        return value

    @model_validator(mode="after")
    def _check_consistency(self) -> "EngineConfig":
        total = sum(self.weights.values())
        if abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"fusion weights must sum to 1.0, got {total:.6f}")
        if self.lock_threshold <= self.detection_threshold:
            raise ValueError(
                "lock_threshold must be greater than detection_threshold "
                f"({self.lock_threshold} <= {self.detection_threshold})"
            )
        if not (self.phase_mid_threshold < self.phase_late_threshold < self.phase_final_threshold):
            raise ValueError("phase confidence thresholds must satisfy mid < late < final")
        if not (self.phase_mid_turn < self.phase_late_turn < self.phase_final_turn):
            raise ValueError("phase turn thresholds must satisfy mid < late < final")
        return self

    @property
    def weights(self) -> Dict[str, float]:
        """Fusion weights keyed by signal name, in fusion order."""
        return {
            "pattern": self.pattern_weight,
            "behavior": self.behavior_weight,
            "context": self.context_weight,
            "urgency": self.urgency_weight,
            "intel": self.intel_weight,
        }


def load_config(env_file: str = None) -> EngineConfig:
    """Build an EngineConfig from HONEYPOT_* environment variables.

    Unset variables fall back to the field defaults. Invalid values raise
    pydantic.ValidationError so a misconfigured deployment fails at startup.
    """
    load_dotenv(env_file)

    overrides = {}
    for name in EngineConfig.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            overrides[name] = raw.strip()

    config = EngineConfig(**overrides)
    if overrides:
        logger.info(f"Engine config overrides: {sorted(overrides)}")
    return config
