"""HTTP shim tests — routes, payload shape, error envelopes."""

import uuid

from fastapi.testclient import TestClient

from honeypot.main import app

client = TestClient(app)


def _session_id() -> str:
    return f"api-{uuid.uuid4()}"


def _payload(session_id: str, text: str) -> dict:
    return {
        "sessionId": session_id,
        "message": {"sender": "scammer", "text": text, "timestamp": 1770005528731},
    }


def test_health_check():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_scam_message_returns_full_result():
    response = client.post("/honeypot", json=_payload(_session_id(), "Send OTP to verify your account"))
    assert response.status_code == 200
    body = response.json()
    assert body["isScam"] is True
    assert "credentialRequest" in body["detectedCategories"]
    assert body["behaviorDirective"] in ("PROBE_FOR_INTEL", "STALL_AND_DOUBT", "REFUSE_AND_ADVISE_ONLY")
    for field in ("scamArchetype", "targetAsset", "reasoning", "safetyAdvice", "responseHint", "scores", "pressureLabel"):
        assert field in body


def test_intel_serialized_as_sorted_lists():
    body = client.post("/honeypot", json=_payload(_session_id(), "Pay the fee to Verify@PayTM")).json()
    assert body["extractedIntel"]["upiIds"] == ["verify@paytm"]
    assert body["extractedIntel"]["phoneNumbers"] == []


def test_blank_text_is_rejected():
    response = client.post("/honeypot", json=_payload(_session_id(), "   "))
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["kind"] == "InvalidInput"
    assert error["retryable"] is False


def test_malformed_payload_is_422():
    response = client.post("/honeypot", json={"sessionId": _session_id()})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["kind"] == "InvalidInput"
    assert error["fields"] == ["message"]


def test_unknown_session_is_404():
    response = client.get(f"/sessions/{_session_id()}")
    assert response.status_code == 404
    assert response.json()["error"]["kind"] == "UnknownSession"


def test_reply_recorded_into_transcript():
    session_id = _session_id()
    client.post("/honeypot", json=_payload(session_id, "Send OTP"))

    reply = client.post(f"/sessions/{session_id}/replies", json={"text": "Which OTP?"})
    assert reply.status_code == 200
    assert reply.json()["turnIndex"] == 1
    assert reply.json()["role"] == "agent"

    view = client.get(f"/sessions/{session_id}").json()
    assert view["turnCount"] == 2
    assert view["session"]["isScam"] is True


def test_app_starts_and_stops_cleanly():
    with TestClient(app) as managed:
        assert managed.get("/").status_code == 200
