"""FastAPI entry point. Thin HTTP shim over the scoring/engagement engine.
Exposes GET / (health), POST /honeypot (process a scammer message),
POST /sessions/{sessionId}/replies (record the agent reply) and
GET /sessions/{sessionId} (read-only session state)."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from honeypot import __version__
from honeypot.engine import build_engine
from honeypot.errors import HoneypotError, InvalidInputError
from honeypot.models import (
    ConversationTurn,
    HoneypotRequest,
    ReplyRequest,
    SessionView,
    TurnResult,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

engine = build_engine()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = engine.config
    logger.info(
        f"Scam Honeypot Engine API v{__version__} started | "
        f"detect>={config.detection_threshold} lock>={config.lock_threshold} | Docs: /docs"
    )
    yield
    logger.info(f"Shutting down with {engine.store.get_session_count()} live sessions")


app = FastAPI(
    lifespan=lifespan,
    title="Scam Honeypot Engine API",
    description="Scam scoring, confidence ratchet and engagement phase state machine",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed payloads share the HoneypotError envelope, listing offending fields."""
    fields = [".".join(str(part) for part in error["loc"] if part != "body") for error in exc.errors()]
    logger.error(f"422 VALIDATION ERROR | {request.url.path} | fields={fields}")
    envelope = InvalidInputError(f"invalid request payload: {', '.join(fields)}").to_response()
    envelope["error"]["fields"] = fields
    return JSONResponse(status_code=422, content=envelope)


@app.exception_handler(HoneypotError)
async def _honeypot_error_handler(request: Request, exc: HoneypotError) -> JSONResponse:
    logger.warning(f"{exc.http_status} {exc.kind.value} | {request.url.path} | {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


@app.get("/")
async def health_check() -> dict:
    return {
        "status": "online",
        "service": "Scam Honeypot Engine API",
        "version": __version__,
    }


@app.post("/honeypot", response_model=TurnResult)
def process_message(request: HoneypotRequest) -> TurnResult:
    """Score the scammer message and advance the session state machine."""
    logger.info(f"[{request.sessionId[:8]}] REQUEST  msg_len={len(request.message.text)}")
    return engine.process_turn(request.sessionId, request.message.text)


@app.post("/sessions/{session_id}/replies", response_model=ConversationTurn)
def record_reply(session_id: str, request: ReplyRequest) -> ConversationTurn:
    """Record the reply the external composer sent back to the scammer."""
    return engine.record_reply(session_id, request.text)


@app.get("/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: str) -> SessionView:
    snapshot = engine.get_session(session_id)
    return SessionView(session=snapshot.session, turnCount=len(snapshot.turns))


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
