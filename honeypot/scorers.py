"""scorers.py — Five Independent Signal Scorers
===============================================

Each layer is a pure function of ``(text, history)`` returning a
``LayerResult(score, categories, signals)`` with ``score`` in [0, 1]:

    pattern   → weighted category rules + literal scam phrases, saturated
                as 1 - exp(-weight_sum / saturation) (never a raw count)
    behavior  → structure: imperative credential/money asks, deadline
                constructs, second-person directive density, repetition
                and persistence across the sender's earlier turns
    context   → escalation against earlier turns: narrative continuation,
                early sensitive asks, unsolicited prizes, prize+payment
                paradox, authority claims (never negative)
    urgency   → count of distinct time-pressure cues × fixed step
    intel     → how many distinct intel types (UPI / phone / URL) appear

``history`` is the ordered list of prior ConversationTurns of the session.

Bounded time:
    Input is stripped and truncated to ``max_message_chars`` before any
    regex runs, and every rule uses bounded gaps, so cost is linear.

Greeting suppression:
    A message made only of pleasantries ("Hello, good morning!") scores
    zero on every layer.
"""

import math
import re
from typing import Dict, NamedTuple, Optional, Sequence, Set, Tuple

from honeypot.config import EngineConfig
from honeypot.extractor import IntelExtractor
from honeypot.models import ConversationTurn, Role, ScamCategory
from honeypot import patterns
from honeypot.patterns import DEFAULT_RULES, ScamRules


_WORD = re.compile(r"[a-z0-9']+", re.IGNORECASE)

# Intel-presence score by number of distinct intel types in the message
_INTEL_TYPE_SCORES = {0: 0.0, 1: 0.5, 2: 0.8, 3: 1.0}

# Jaccard word overlap above which a message repeats an earlier one
_REPETITION_SIMILARITY = 0.6
_PERSISTENCE_TURNS = 3
_EARLY_TURNS_SENSITIVE = 3
_EARLY_TURNS_PRIZE = 2


class LayerResult(NamedTuple):
    score: float
    categories: Dict[ScamCategory, float]
    signals: Tuple[str, ...]


EMPTY_LAYER = LayerResult(0.0, {}, ())


class SignalLayers(NamedTuple):
    """All five layer results for one message, in fusion order."""
    pattern: LayerResult
    behavior: LayerResult
    context: LayerResult
    urgency: LayerResult
    intel: LayerResult

    def vector(self) -> Tuple[float, float, float, float, float]:
        return tuple(layer.score for layer in self)

    def categories(self) -> Dict[ScamCategory, float]:
        """Category weights of this message, in first-detection order."""
        merged: Dict[ScamCategory, float] = {}
        for layer in self:
            for category, weight in layer.categories.items():
                merged[category] = merged.get(category, 0.0) + weight
        return merged

    def signals(self) -> Tuple[str, ...]:
        return tuple(signal for layer in self for signal in layer.signals)


def _round(value: float) -> float:
    return round(min(max(value, 0.0), 1.0), 4)


def _prior_user_turns(history: Sequence[ConversationTurn]) -> Sequence[ConversationTurn]:
    return [turn for turn in history if turn.role == Role.USER]


def _word_set(text: str) -> Set[str]:
    return {word.lower() for word in _WORD.findall(text)}


def _jaccard(left: Set[str], right: Set[str]) -> float:
    if not left or not right:
        return 0.0
    return len(left & right) / len(left | right)


class SignalScorers:
    """Stateless scorers configured by an injected EngineConfig + ScamRules."""

    def __init__(
        self,
        config: EngineConfig,
        rules: ScamRules = DEFAULT_RULES,
        extractor: Optional[IntelExtractor] = None,
    ) -> None:
        self.config = config
        self.rules = rules
        self.extractor = extractor or IntelExtractor()

    # ================================================================
    # INPUT PREPARATION
    # ================================================================

    def sanitize(self, text: str) -> str:
        """Strip and truncate to the configured maximum length."""
        if not isinstance(text, str):
            return ""
        return text.strip()[: self.config.max_message_chars]

    def _scorable(self, text: str) -> Optional[str]:
        """Sanitized text, or None when the message cannot carry signal."""
        cleaned = self.sanitize(text)
        if not cleaned or self.rules.is_pure_greeting(cleaned):
            return None
        return cleaned

    # ================================================================
    # LAYERS
    # ================================================================

    def pattern_layer(self, text: str, history: Sequence[ConversationTurn] = ()) -> LayerResult:
        cleaned = self._scorable(text)
        if cleaned is None:
            return EMPTY_LAYER

        weights: Dict[ScamCategory, float] = {}
        signals = []
        for rule in self.rules.category_rules:
            if rule.regex.search(cleaned):
                weights[rule.category] = weights.get(rule.category, 0.0) + rule.weight
                signals.append(rule.name)

        lowered = cleaned.lower()
        for phrase, category in self.rules.phrases:
            if phrase in lowered:
                weights[category] = weights.get(category, 0.0) + self.rules.phrase_weight
                signals.append(f"phrase:{phrase}")

        total = sum(weights.values())
        score = 1.0 - math.exp(-total / self.config.pattern_saturation)
        return LayerResult(_round(score), weights, tuple(signals))

    def behavior_layer(self, text: str, history: Sequence[ConversationTurn] = ()) -> LayerResult:
        cleaned = self._scorable(text)
        if cleaned is None:
            return EMPTY_LAYER

        score = 0.0
        signals = []

        if patterns.IMPERATIVE_REQUEST.search(cleaned):
            score += 0.4
            signals.append("imperative_request")

        if patterns.DEADLINE_CONSTRUCT.search(cleaned):
            score += 0.3
            signals.append("deadline_construct")

        word_count = len(_WORD.findall(cleaned))
        second_person = len(patterns.SECOND_PERSON.findall(cleaned))
        if word_count and second_person:
            score += min(0.3, second_person / word_count * 1.5)
            signals.append("directive_density")

        if len(patterns.PRESSURE_WORDS.findall(cleaned)) >= 2:
            score += 0.2
            signals.append("pressure_tactics")

        prior_texts = [turn.text for turn in _prior_user_turns(history)]
        current_words = _word_set(cleaned)
        if len(current_words) >= 3 and any(
            _jaccard(current_words, _word_set(prior)) > _REPETITION_SIMILARITY
            for prior in prior_texts
        ):
            score += 0.3
            signals.append("repetitive_requests")

        recent = prior_texts[-(_PERSISTENCE_TURNS - 1):] + [cleaned]
        if len(recent) >= _PERSISTENCE_TURNS and all(
            patterns.REQUEST_VERBS.search(message) for message in recent
        ):
            score += 0.25
            signals.append("aggressive_persistence")

        return LayerResult(_round(score), {}, tuple(signals))

    def context_layer(self, text: str, history: Sequence[ConversationTurn] = ()) -> LayerResult:
        cleaned = self._scorable(text)
        if cleaned is None:
            return EMPTY_LAYER

        prior_turns = _prior_user_turns(history)
        prior_categories: Set[ScamCategory] = set()
        for turn in prior_turns:
            if turn.scores is not None:
                prior_categories.update(turn.scores.detectedCategories)

        current_categories = set(self.pattern_layer(cleaned).categories)
        score = 0.0
        weights: Dict[ScamCategory, float] = {}
        signals = []

        if current_categories and prior_categories:
            if current_categories & prior_categories:
                score += 0.3
                signals.append("narrative_continuation")
            else:
                score += 0.15
                signals.append("narrative_escalation")

        if patterns.SENSITIVE_REQUEST.search(cleaned) and len(prior_turns) < _EARLY_TURNS_SENSITIVE:
            score += 0.5
            weights[ScamCategory.CREDENTIAL_REQUEST] = 0.5
            signals.append("early_sensitive_request")

        prize_now = bool(patterns.PRIZE_MENTION.search(cleaned))
        if prize_now and len(prior_turns) < _EARLY_TURNS_PRIZE:
            score += 0.4
            weights[ScamCategory.LOTTERY_PRIZE] = 0.4
            signals.append("unsolicited_prize")

        prize_context = prize_now or ScamCategory.LOTTERY_PRIZE in prior_categories
        if prize_context and patterns.PAYMENT_MENTION.search(cleaned):
            score += 0.6
            weights[ScamCategory.LOTTERY_PRIZE] = weights.get(ScamCategory.LOTTERY_PRIZE, 0.0) + 0.6
            signals.append("prize_payment_paradox")

        if patterns.AUTHORITY_CLAIM.search(cleaned):
            score += 0.3
            weights[ScamCategory.AUTHORITY] = 0.3
            signals.append("authority_claim")

        return LayerResult(_round(score), weights, tuple(signals))

    def urgency_layer(self, text: str, history: Sequence[ConversationTurn] = ()) -> LayerResult:
        cleaned = self._scorable(text)
        if cleaned is None:
            return EMPTY_LAYER
        hits = sum(1 for cue in self.rules.urgency_cues if cue.search(cleaned))
        if not hits:
            return EMPTY_LAYER
        return LayerResult(_round(hits * self.config.urgency_step), {}, (f"urgency_cues:{hits}",))

    def intel_layer(self, text: str, history: Sequence[ConversationTurn] = ()) -> LayerResult:
        cleaned = self._scorable(text)
        if cleaned is None:
            return EMPTY_LAYER
        intel = self.extractor.extract(cleaned)
        signals = []
        if intel.upiIds:
            signals.append("upi_id")
        if intel.phoneNumbers:
            signals.append("phone_number")
        if intel.urls:
            signals.append("url")
        return LayerResult(_INTEL_TYPE_SCORES[intel.type_count()], {}, tuple(signals))

    def score_all(self, text: str, history: Sequence[ConversationTurn] = ()) -> SignalLayers:
        return SignalLayers(
            pattern=self.pattern_layer(text, history),
            behavior=self.behavior_layer(text, history),
            context=self.context_layer(text, history),
            urgency=self.urgency_layer(text, history),
            intel=self.intel_layer(text, history),
        )

    # ================================================================
    # BARE SCORE ACCESSORS
    # ================================================================

    def pattern_score(self, text: str, history: Sequence[ConversationTurn] = ()) -> float:
        return self.pattern_layer(text, history).score

    def behavior_score(self, text: str, history: Sequence[ConversationTurn] = ()) -> float:
        return self.behavior_layer(text, history).score

    def context_score(self, text: str, history: Sequence[ConversationTurn] = ()) -> float:
        return self.context_layer(text, history).score

    def urgency_score(self, text: str, history: Sequence[ConversationTurn] = ()) -> float:
        return self.urgency_layer(text, history).score

    def intel_score(self, text: str, history: Sequence[ConversationTurn] = ()) -> float:
        return self.intel_layer(text, history).score
