"""
Unit tests for the feature gate and usage guard dependencies.
Uses a small app so gated routes can be exercised directly.
"""
import pytest
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from career_advisor.core.errors import AppError
from career_advisor.core.gating import require_feature
from career_advisor.core.quota_guard import require_usage
from career_advisor.core.tiers import ROADMAPS_CREATED
from career_advisor.db.session import get_db
from career_advisor.services import usage_service

from conftest import override_get_db


def build_app() -> FastAPI:
    app = FastAPI()

    @app.exception_handler(AppError)
    async def app_error_handler(request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/gated")
    def gated(user_id: str = Depends(require_feature("roadmap-generator"))):
        return {"user_id": user_id}

    @app.post("/metered")
    def metered(user_id: str = Depends(require_usage("roadmap_creation"))):
        return {"user_id": user_id}

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def gated_client():
    return TestClient(build_app())


def test_feature_requires_session(gated_client):
    response = gated_client.get("/gated")
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required", "code": "AUTH_REQUIRED"}


def test_free_user_is_told_to_upgrade(gated_client, auth_headers):
    response = gated_client.get("/gated", headers=auth_headers)

    assert response.status_code == 403
    body = response.json()
    assert body["code"] == "TIER_REQUIRED"
    assert body["currentTier"] == "free"
    assert body["upgradeUrl"] == "/pricing"


def test_premium_user_passes_gate(gated_client, make_user, headers_for):
    user = make_user(email="premium@example.com", tier="premium")
    response = gated_client.get("/gated", headers=headers_for(user))
    assert response.json() == {"user_id": user.id}


def test_usage_guard_consumes_allowance(gated_client, make_user, headers_for, db):
    user = make_user(email="basic@example.com", tier="basic")
    headers = headers_for(user)

    first = gated_client.post("/metered", headers=headers)
    second = gated_client.post("/metered", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.json()["code"] == "USAGE_LIMIT_EXCEEDED"
    assert second.json()["error"].startswith("Roadmap creation limit reached")
    assert usage_service.get_daily_counts(db, user.id)[ROADMAPS_CREATED] == 1
