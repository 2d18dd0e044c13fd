"""
Scam Honeypot Engine — Core Package
====================================

Scam scoring and engagement state machine for a conversational honeypot:
    - config.py         : Tunable weights/thresholds (env + .env driven, validated)
    - errors.py         : Typed error hierarchy (InvalidInput, SessionBusy, ...)
    - models.py         : Pydantic session, turn, score and result schemas
    - patterns.py       : Immutable weighted scam rule tables
    - extractor.py      : Regex intelligence extraction (UPI, phone, URL)
    - scorers.py        : Five signal scorers (pattern/behavior/context/urgency/intel)
    - emotion.py        : Lexical emotion classifier + response hints
    - velocity.py       : Pressure velocity tracker
    - fusion.py         : Weighted confidence fusion + decay guard
    - legitimacy.py     : Legitimacy-claim handler and downgrade veto
    - archetype.py      : Dominant scam archetype classifier
    - analysis.py       : Reasoning, safety advice and target-asset helpers
    - state_machine.py  : Engagement phase FSM (sole writer of session state)
    - store.py          : Session store contract, in-memory store, per-session locks
    - engine.py         : process_turn orchestration under the session lock
    - main.py           : FastAPI shim exposing the engine over HTTP
"""

__version__ = "3.0.0"
