"""Emotion classifier tests — family scoring, tie-breaks, response hints."""

from honeypot.config import EngineConfig
from honeypot.emotion import EmotionClassifier
from honeypot.models import EngagementPhase, Emotion


def _classifier(**overrides) -> EmotionClassifier:
    return EmotionClassifier(EngineConfig(**overrides))


def test_threat_language_reads_as_fear():
    emotion, intensity = _classifier().classify("Your account will be blocked and police case filed")
    assert emotion == Emotion.FEAR
    assert intensity == 1.0


def test_equal_scores_resolve_by_priority():
    # excited and hesitant both score 2 × 0.6
    emotion, _ = _classifier().classify("You won a prize but wait, this is strange")
    assert emotion == Emotion.EXCITED


def test_heavier_family_wins():
    emotion, _ = _classifier().classify("This is useless nonsense, I will call the police")
    assert emotion == Emotion.ANGRY


def test_no_cues_is_neutral():
    assert _classifier().classify("I will check and get back") == (Emotion.NEUTRAL, 0.0)


def test_min_score_threshold_applies():
    assert _classifier().classify("thank you")[0] == Emotion.TRUSTING
    assert _classifier(emotion_min_score=0.5).classify("thank you") == (Emotion.NEUTRAL, 0.0)


def test_intensity_scales_with_cue_density():
    _, dense = _classifier().classify("urgent now")
    _, sparse = _classifier().classify("it is urgent that we talk about the weather and other things")
    assert dense > sparse > 0.0


def test_empty_and_non_string_are_neutral():
    assert _classifier().classify("") == (Emotion.NEUTRAL, 0.0)
    assert _classifier().classify(None) == (Emotion.NEUTRAL, 0.0)


def test_response_hint_by_emotion_and_phase():
    hint = EmotionClassifier.response_hint(Emotion.ANGRY, EngagementPhase.EARLY)
    assert (hint.tone, hint.action, hint.priority) == ("calm", "de-escalate", "high")


def test_final_phase_always_wraps_up():
    for emotion in Emotion:
        assert EmotionClassifier.response_hint(emotion, EngagementPhase.FINAL).action == "wrap_up"


def test_classification_is_repeatable():
    classifier = _classifier()
    history = [Emotion.FEAR, Emotion.URGENT]
    text = "Your account will be blocked, act now"
    first = classifier.classify(text, history)
    assert classifier.classify(text, history) == first
    assert history == [Emotion.FEAR, Emotion.URGENT]


def test_repeated_emotion_raises_intensity():
    classifier = _classifier()
    text = "it is a legal matter that we should talk about over the coming week together"
    emotion, fresh = classifier.classify(text)
    _, repeated = classifier.classify(text, [Emotion.FEAR, Emotion.FEAR])
    assert emotion == Emotion.FEAR
    assert repeated == round(fresh + 0.5, 4)


def test_only_recent_history_counts_toward_repeats():
    classifier = _classifier()
    text = "it is a legal matter that we should talk about over the coming week together"
    _, fresh = classifier.classify(text)
    old_fear = [Emotion.FEAR, Emotion.FEAR, Emotion.NEUTRAL, Emotion.CONFUSED, Emotion.NEUTRAL]
    assert classifier.classify(text, old_fear)[1] == fresh


def test_history_never_lifts_neutral():
    assert _classifier().classify("I will check and get back", [Emotion.FEAR] * 3) == (Emotion.NEUTRAL, 0.0)
