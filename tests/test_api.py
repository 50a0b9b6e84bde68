"""Tests des routes HTTP: enrichissement, voix, sessions et enveloppes d'erreur."""

import httpx
import pytest
from fastapi.testclient import TestClient

from oracle.app.main import app
from oracle.core.container import container
from oracle.core.http_constants import (
    HTTP_CONFLICT,
    HTTP_CREATED,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NO_CONTENT,
    HTTP_NOT_FOUND,
    HTTP_OK,
    HTTP_UNPROCESSABLE_ENTITY,
)
from oracle.domain.orchestrator import SKIP_RELATIONSHIP
from oracle.infra.enhancement import EnhancementGateway
from oracle.infra.speech import SpeechGateway
from tests.fakes import FakeLLM

PAYWALL_CARDS = ["Unlock My Complete Reading", "Maybe later"]
EMITTED_ERROR_CODES = {
    "NOT_FOUND",
    "CONFLICT",
    "INTERNAL_ERROR",
    "INVALID_EVENT",
    "PROFILE_INCOMPLETE",
}
INTERPRET_PAYLOAD = {
    "mode": "interpret",
    "context": {"lifePath": 7, "userName": "Ana"},
    "phase": "paid_reading",
    "baseMessages": ["Life Path 7. The Seeker."],
    "interpret": {
        "numberType": "lifePath",
        "number": 7,
        "baseInterpretation": {
            "name": "The Seeker",
            "shortDescription": "You look inward.",
            "coreDescription": "Your soul listens.",
        },
    },
}

client = TestClient(app)


def _new_session() -> dict:
    r = client.post("/api/sessions")
    assert r.status_code == HTTP_CREATED
    return r.json()


def _to_personal_paywall() -> str:
    session_id = _new_session()["id"]
    client.post(f"/api/sessions/{session_id}/input", json={"text": "March 15, 1990"})
    client.post(f"/api/sessions/{session_id}/input", json={"text": "Ana Lima"})
    client.post(f"/api/sessions/{session_id}/suggestion", json={"text": SKIP_RELATIONSHIP})
    r = client.post(f"/api/sessions/{session_id}/input", json={"text": "ana@example.com"})
    assert r.json()["phase"] == "personal_paywall"
    return session_id


def test_oracle_echoes_base_messages_without_key() -> None:
    """Teste le repli de /api/oracle: sans clé, les messages de base reviennent inchangés."""
    payload = {
        "mode": "enhance",
        "context": {"lifePath": 7, "userName": "Ana"},
        "phase": "collecting_name",
        "baseMessages": ["I see you.", "Tell me your name."],
    }
    r = client.post("/api/oracle", json=payload)
    assert r.status_code == HTTP_OK
    assert r.json() == {"messages": ["I see you.", "Tell me your name."], "suggestions": []}


def test_oracle_validation_mode_fallback() -> None:
    payload = {
        "mode": "validation",
        "baseMessages": ["a"],
        "validation": {"errorCode": "OFF_TOPIC", "originalInput": "pizza", "expectedInput": "date"},
    }
    r = client.post("/api/oracle", json=payload)
    assert r.status_code == HTTP_OK
    assert r.json()["messages"] == ["a"]


@pytest.mark.parametrize(
    "mode", ["interpret", "criticalDate", "yearAhead", "relationshipAdvice"]
)
def test_oracle_personalize_mode_requires_payload(mode: str) -> None:
    r = client.post("/api/oracle", json={"mode": mode, "baseMessages": ["a"]})
    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY


def test_oracle_personalize_echoes_base_messages_without_key() -> None:
    r = client.post("/api/oracle", json=INTERPRET_PAYLOAD)
    assert r.status_code == HTTP_OK
    assert r.json() == {"messages": ["Life Path 7. The Seeker."], "suggestions": []}


def test_oracle_interpret_with_llm(monkeypatch) -> None:
    """Teste l'interprétation personnalisée renvoyée en camelCase."""
    llm = FakeLLM(response="Life Path 7. The Seeker.\nYou look inward.\nYour soul listens.")
    monkeypatch.setattr(container, "enhancer", EnhancementGateway(llm))
    r = client.post("/api/oracle", json=INTERPRET_PAYLOAD)
    assert r.status_code == HTTP_OK
    assert r.json() == {
        "interpretation": {
            "title": "Life Path 7. The Seeker.",
            "shortDescription": "You look inward.",
            "coreDescription": "Your soul listens.",
        }
    }


def test_oracle_critical_date_failure_echoes_base(monkeypatch) -> None:
    llm = FakeLLM(error=RuntimeError("boom"))
    monkeypatch.setattr(container, "enhancer", EnhancementGateway(llm))
    payload = {
        "mode": "criticalDate",
        "baseMessages": ["January 1, 2026. A new cycle."],
        "criticalDate": {
            "date": "January 1, 2026",
            "type": "personal year shift",
            "baseDescription": "A new cycle.",
        },
    }
    r = client.post("/api/oracle", json=payload)
    assert r.status_code == HTTP_OK
    assert r.json() == {"messages": ["January 1, 2026. A new cycle."]}


def test_oracle_relationship_advice_with_llm(monkeypatch) -> None:
    monkeypatch.setattr(container, "enhancer", EnhancementGateway(FakeLLM(response="Go slow.")))
    payload = {
        "mode": "relationshipAdvice",
        "context": {"lifePath": 1, "userName": "Ana"},
        "relationshipAdvice": {
            "otherName": "Leo",
            "otherLifePath": 3,
            "compatibilityScore": 72,
            "compatibilityLevel": "high",
            "areas": {"communication": 80, "emotional": 70, "physical": 75, "longTerm": 65},
        },
    }
    r = client.post("/api/oracle", json=payload)
    assert r.json() == {"advice": {"full": "Go slow."}}


def test_speech_without_key() -> None:
    """Teste que la clé absente est signalée avant le texte manquant."""
    r = client.post("/api/speech", json={})
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json() == {"error": "ElevenLabs API key not configured"}
    r = client.post("/api/speech/ws-auth")
    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR


def test_create_session_plays_opening() -> None:
    body = _new_session()
    assert body["phase"] == "collecting_dob"
    assert body["input"]["show_input"] is True
    assert body["input"]["input_type"] == "date"
    assert body["messages"][-1]["content"] == "Tell me... when were you born?"
    assert body["messages"][0]["metadata"]["pause_before_ms"] > 0
    assert body["has_paid"] is False


def test_session_input_flow() -> None:
    """Teste une date valide: profil calculé, cartes de révélation proposées."""
    session_id = _new_session()["id"]
    r = client.post(f"/api/sessions/{session_id}/input", json={"text": "March 15, 1990"})
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["phase"] == "collecting_name"
    assert body["profile"]["life_path"] == 1
    assert "Tell me more about this number" in body["suggestions"]
    assert any(m["type"] == "calculation" for m in body["messages"])

    r = client.get(f"/api/sessions/{session_id}")
    assert r.json()["phase"] == "collecting_name"


def test_invalid_input_keeps_phase() -> None:
    session_id = _new_session()["id"]
    r = client.post(f"/api/sessions/{session_id}/input", json={"text": "13/15/1990"})
    body = r.json()
    assert body["phase"] == "collecting_dob"
    assert body["profile"]["dob"] is None
    assert body["messages"][-1]["type"] == "oracle"


def test_purchase_flow_and_conflict() -> None:
    """Teste l'achat sur le paywall puis le refus d'un second achat (409)."""
    session_id = _to_personal_paywall()
    r = client.get(f"/api/sessions/{session_id}")
    assert r.json()["suggestions"] == PAYWALL_CARDS

    r = client.post(f"/api/sessions/{session_id}/purchase", json={"tier": 2})
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["phase"] == "paid_reading"
    assert body["has_paid"] is True
    assert body["paid_tier"] == 2

    r = client.post(f"/api/sessions/{session_id}/purchase", json={"tier": 2})
    assert r.status_code == HTTP_CONFLICT
    assert r.json()["code"] == "INVALID_EVENT"
    assert r.json()["trace_id"]


def test_purchase_payload_validated() -> None:
    session_id = _new_session()["id"]
    r = client.post(f"/api/sessions/{session_id}/purchase", json={})
    assert r.status_code == HTTP_UNPROCESSABLE_ENTITY


def test_unknown_session_envelope() -> None:
    r = client.get("/api/sessions/nope", headers={"X-Trace-ID": "trace-123"})
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json() == {
        "code": "NOT_FOUND",
        "message": "session nope not found",
        "trace_id": "trace-123",
    }


def test_delete_session() -> None:
    session_id = _new_session()["id"]
    r = client.delete(f"/api/sessions/{session_id}")
    assert r.status_code == HTTP_NO_CONTENT
    assert container.sessions.get(session_id) is None
    assert client.delete(f"/api/sessions/{session_id}").status_code == HTTP_NOT_FOUND


def test_request_id_and_timing_headers() -> None:
    r = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert r.headers["X-Request-ID"] == "req-1"
    assert int(r.headers["X-Process-Time-ms"]) >= 0



def test_lifespan_closes_speech_client(monkeypatch) -> None:
    """Teste la fermeture du client HTTP de la passerelle vocale à l'arrêt de l'application."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    gateway = SpeechGateway(None, "voice-1", "model-1", client=http)
    monkeypatch.setattr(container, "speech", gateway)
    with TestClient(app) as scoped:
        assert scoped.get("/health").status_code == HTTP_OK
    assert http.is_closed
    assert gateway._client is None


def test_error_codes_are_all_emitted() -> None:
    """Teste que chaque code d'erreur déclaré est produit par un gestionnaire ou une route."""
    from oracle.apigw import errors

    declared = {v for k, v in vars(errors.ErrorCodes).items() if k.isupper()}
    assert declared == EMITTED_ERROR_CODES
    assert not hasattr(errors, "bad_request")
