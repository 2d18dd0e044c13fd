"""Root conftest — shared fixtures for the scoring/engagement core."""

import pytest

from honeypot.config import EngineConfig
from honeypot.engine import HoneypotEngine
from honeypot.models import ConversationTurn, Role, ScamCategory, ScoreBreakdown
from honeypot.scorers import SignalScorers
from honeypot.store import InMemorySessionStore


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig()


@pytest.fixture
def scorers(config) -> SignalScorers:
    return SignalScorers(config)


@pytest.fixture
def engine(config) -> HoneypotEngine:
    return HoneypotEngine(InMemorySessionStore(), config)


def user_turn(index: int, text: str = "", urgency: float = 0.0, velocity: float = 0.0,
              categories=()) -> ConversationTurn:
    """A scored user turn for building session histories by hand."""
    return ConversationTurn(
        turnIndex=index,
        role=Role.USER,
        text=text,
        scores=ScoreBreakdown(
            patternScore=0.0,
            behaviorScore=0.0,
            contextScore=0.0,
            urgencyScore=urgency,
            intelScore=0.0,
            rawConfidence=0.0,
            fusedConfidence=0.0,
            pressureVelocity=velocity,
            detectedCategories=[ScamCategory(c) for c in categories],
        ),
    )


def agent_turn(index: int, text: str = "Oh, what happened?") -> ConversationTurn:
    return ConversationTurn(turnIndex=index, role=Role.AGENT, text=text)
