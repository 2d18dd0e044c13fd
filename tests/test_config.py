"""Configuration tests — defaults, validation rules and env overrides."""

import pytest
from pydantic import ValidationError

from honeypot.config import EngineConfig, load_config


def test_default_weights_sum_to_one():
    config = EngineConfig()
    assert sum(config.weights.values()) == pytest.approx(1.0)
    assert list(config.weights) == ["pattern", "behavior", "context", "urgency", "intel"]


def test_lock_threshold_above_detection_threshold_by_default():
    config = EngineConfig()
    assert config.lock_threshold > config.detection_threshold


def test_wrap_up_defaults():
    config = EngineConfig()
    assert (config.wrap_up_turn, config.wrap_up_min_urls) == (6, 2)
    with pytest.raises(ValidationError):
        EngineConfig(wrap_up_min_urls=0)


def test_weights_not_summing_to_one_rejected():
    with pytest.raises(ValidationError):
        EngineConfig(pattern_weight=0.5)


def test_lock_threshold_must_exceed_detection_threshold():
    with pytest.raises(ValidationError):
        EngineConfig(detection_threshold=0.6, lock_threshold=0.6)


def test_phase_thresholds_must_be_ordered():
    with pytest.raises(ValidationError):
        EngineConfig(phase_mid_threshold=0.7, phase_late_threshold=0.6)


def test_phase_turns_must_be_ordered():
    with pytest.raises(ValidationError):
        EngineConfig(phase_mid_turn=5, phase_late_turn=5)


def test_config_is_frozen():
    config = EngineConfig()
    with pytest.raises(ValidationError):
        config.detection_threshold = 0.9


def test_negative_lock_timeout_means_wait_forever():
    assert EngineConfig(session_lock_timeout=-5).session_lock_timeout == -1.0


def test_load_config_reads_prefixed_env(monkeypatch):
    monkeypatch.setenv("HONEYPOT_DETECTION_THRESHOLD", "0.25")
    monkeypatch.setenv("HONEYPOT_PHASE_FINAL_TURN", "12")
    config = load_config()
    assert config.detection_threshold == pytest.approx(0.25)
    assert config.phase_final_turn == 12


def test_load_config_rejects_invalid_env(monkeypatch):
    monkeypatch.setenv("HONEYPOT_PATTERN_WEIGHT", "0.9")
    with pytest.raises(ValidationError):
        load_config()


def test_load_config_ignores_blank_env(monkeypatch):
    monkeypatch.setenv("HONEYPOT_LOCK_THRESHOLD", "  ")
    assert load_config().lock_threshold == EngineConfig().lock_threshold
