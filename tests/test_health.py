"""Tests pour l'endpoint de santé de l'application."""

from fastapi.testclient import TestClient

from oracle.app.main import app
from oracle.core.http_constants import HTTP_OK


def test_health():
    """Teste que l'endpoint de santé retourne un statut OK, même sans passerelles configurées."""
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    body = r.json()
    assert body["status"] == "ok"
    assert body["enhancement"] is False
    assert body["speech"] is False
    assert isinstance(body["sessions"], int)
