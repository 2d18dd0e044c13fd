"""emotion.py — Lexical Emotion Classifier
==========================================

Labels the sender's emotional register from keyword cue families.
Emotion shapes the TONE of the external reply, never the risk score.

Scoring:
    family_score = family_weight × number of distinct cues matched
    winner       = highest family_score; ties broken by priority
                   fear > urgent > angry > excited > hesitant > confused > trusting
    neutral      = when the best family_score is below ``emotion_min_score``
    intensity    = min(1, cues_matched / word_count × emotion_density_scale
                          + repeats × emotion_repeat_boost)
    repeats      = times the winner appears in the last ``emotion_repeat_window``
                   labels of the session's emotion history
"""

import re
from typing import Dict, Pattern, Sequence, Tuple

from honeypot.config import EngineConfig
from honeypot.models import EngagementPhase, Emotion, ResponseHint


_WORD = re.compile(r"[a-z0-9']+", re.IGNORECASE)


def _cues(*patterns: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE) for pattern in patterns)


# (weight, cues) per family
EMOTION_FAMILIES: Dict[Emotion, Tuple[float, Tuple[Pattern, ...]]] = {
    Emotion.FEAR: (0.8, _cues(
        r"blocked|block", r"suspend(?:ed)?", r"legal", r"court", r"arrest(?:ed)?",
        r"penalty", r"fine", r"jail", r"police", r"case", r"complaint",
        r"deactivat(?:e|ed)", r"terminat(?:e|ed)", r"frozen|freeze",
    )),
    Emotion.URGENT: (0.7, _cues(
        r"urgent(?:ly)?", r"immediate(?:ly)?", r"now", r"quick(?:ly)?", r"fast",
        r"hurry", r"asap", r"today", r"last chance", r"limited time", r"deadline",
        r"expir(?:e|es|ing)",
    )),
    Emotion.ANGRY: (0.9, _cues(
        r"useless", r"idiot", r"waste|wasting", r"nonsense", r"stupid", r"fool",
        r"ridiculous", r"pathetic", r"dumb", r"shut up",
    )),
    Emotion.EXCITED: (0.6, _cues(
        r"won", r"congratulations", r"reward", r"prize", r"gift", r"selected",
        r"winner", r"lucky", r"bonus", r"cashback", r"free",
    )),
    Emotion.HESITANT: (0.6, _cues(
        r"however", r"wait", r"hold on", r"not comfortable", r"suspicious",
        r"seems odd", r"not right", r"unusual", r"strange", r"doubt",
    )),
    Emotion.CONFUSED: (0.5, _cues(
        r"not sure", r"confused", r"don'?t understand", r"explain", r"clarify",
        r"don'?t know", r"unclear", r"huh", r"what do you mean",
    )),
    Emotion.TRUSTING: (0.4, _cues(
        r"yes sir", r"ok sir", r"will do", r"understood", r"thank you", r"grateful",
        r"appreciate", r"help me", r"guide me", r"tell me what to do",
    )),
}

# Tie-break order, highest priority first
EMOTION_PRIORITY = (
    Emotion.FEAR,
    Emotion.URGENT,
    Emotion.ANGRY,
    Emotion.EXCITED,
    Emotion.HESITANT,
    Emotion.CONFUSED,
    Emotion.TRUSTING,
    Emotion.NEUTRAL,
)


# ═══════════════════════════════════════════════════════════════════════
# RESPONSE HINTS — (emotion, phase) → tone guidance for the reply composer
# ═══════════════════════════════════════════════════════════════════════

_WRAP_UP = ("neutral", "wrap_up", "low")

RESPONSE_HINTS: Dict[Emotion, Dict[EngagementPhase, Tuple[str, str, str]]] = {
    Emotion.ANGRY: {
        EngagementPhase.EARLY: ("calm", "de-escalate", "high"),
        EngagementPhase.MID: ("patient", "redirect", "high"),
        EngagementPhase.LATE: ("firm_but_polite", "maintain_calm", "high"),
    },
    Emotion.CONFUSED: {
        EngagementPhase.EARLY: ("helpful", "clarify", "medium"),
        EngagementPhase.MID: ("patient", "explain", "medium"),
        EngagementPhase.LATE: ("simple", "simplify", "medium"),
    },
    Emotion.FEAR: {
        EngagementPhase.EARLY: ("reassuring", "comfort", "medium"),
        EngagementPhase.MID: ("calm", "slow_down", "medium"),
        EngagementPhase.LATE: ("steady", "delay", "medium"),
    },
    Emotion.URGENT: {
        EngagementPhase.EARLY: ("calm", "delay", "high"),
        EngagementPhase.MID: ("deliberate", "slow_process", "high"),
        EngagementPhase.LATE: ("questioning", "buy_time", "high"),
    },
    Emotion.EXCITED: {
        EngagementPhase.EARLY: ("curious", "question", "medium"),
        EngagementPhase.MID: ("cautious", "verify", "medium"),
        EngagementPhase.LATE: ("skeptical", "probe", "high"),
    },
    Emotion.TRUSTING: {
        EngagementPhase.EARLY: ("cooperative", "engage", "low"),
        EngagementPhase.MID: ("helpful", "assist", "low"),
        EngagementPhase.LATE: ("careful", "verify", "medium"),
    },
    Emotion.HESITANT: {
        EngagementPhase.EARLY: ("gentle", "encourage", "low"),
        EngagementPhase.MID: ("patient", "address_concerns", "medium"),
        EngagementPhase.LATE: ("questioning", "probe", "high"),
    },
    Emotion.NEUTRAL: {
        EngagementPhase.EARLY: ("normal", "respond", "low"),
        EngagementPhase.MID: ("normal", "respond", "low"),
        EngagementPhase.LATE: ("normal", "respond", "low"),
    },
}


class EmotionClassifier:
    """Pure lexical classifier; safe to share across sessions."""

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def classify(self, text: str, history: Sequence[Emotion] = ()) -> Tuple[Emotion, float]:
        """Return ``(label, intensity)`` for one message.

        ``history`` is the session's earlier labels, oldest first. Each repeat
        of the winning label among the last ``emotion_repeat_window`` entries
        adds ``emotion_repeat_boost`` to the intensity.
        """
        if not isinstance(text, str):
            return Emotion.NEUTRAL, 0.0
        cleaned = text.strip()[: self.config.max_message_chars]
        if not cleaned:
            return Emotion.NEUTRAL, 0.0

        best, best_score, best_hits = Emotion.NEUTRAL, 0.0, 0
        # Strict '>' keeps the earlier (higher priority) family on ties
        for emotion in EMOTION_PRIORITY[:-1]:
            weight, cues = EMOTION_FAMILIES[emotion]
            hits = sum(1 for cue in cues if cue.search(cleaned))
            score = weight * hits
            if score > best_score:
                best, best_score, best_hits = emotion, score, hits

        if best_score < self.config.emotion_min_score or best_hits == 0:
            return Emotion.NEUTRAL, 0.0

        word_count = max(len(_WORD.findall(cleaned)), 1)
        density = best_hits / word_count * self.config.emotion_density_scale
        recent = list(history)[-self.config.emotion_repeat_window:]
        repeats = sum(1 for label in recent if label == best)
        intensity = min(1.0, density + repeats * self.config.emotion_repeat_boost)
        return best, round(intensity, 4)

    @staticmethod
    def response_hint(emotion: Emotion, phase: EngagementPhase) -> ResponseHint:
        """Tone guidance for the reply composer. Final phase always wraps up."""
        if phase == EngagementPhase.FINAL:
            tone, action, priority = _WRAP_UP
        else:
            tone, action, priority = RESPONSE_HINTS.get(emotion, RESPONSE_HINTS[Emotion.NEUTRAL])[phase]
        return ResponseHint(tone=tone, action=action, priority=priority)
