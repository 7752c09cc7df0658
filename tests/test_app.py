"""
Smoke tests for the health check, root endpoint and global error handlers.
"""
from fastapi.testclient import TestClient

from career_advisor.main import app
from career_advisor.services import quiz_service


def test_root(client):
    assert client.get("/").json() == {"status": "Career Advisor API running"}


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["version"] == "1.0.0"


def test_invalid_body_returns_400_with_details(client, auth_headers):
    response = client.post("/api/skills", headers=auth_headers, json={"action": "add", "skillId": "abc"})

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "Invalid request data"
    assert data["details"][0]["loc"] == ["body", "skillId"]


def test_unhandled_error_returns_500(client, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(quiz_service, "save_results", explode)
    raw_client = TestClient(app, raise_server_exceptions=False)

    response = raw_client.post("/api/quiz/submit", json={})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "details": "boom"}
