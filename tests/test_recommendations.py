import json

from career_advisor.db.models.activity import Activity
from career_advisor.db.models.skill import Skill
from career_advisor.services import recommendation_service
from career_advisor.services.recommendation_service import (
    GENERIC_RECOMMENDATIONS,
    UserContext,
    determine_experience_level,
    fallback_recommendations,
    rule_based_recommendations,
)


def _skill(id, name, current, target=100):
    return Skill(id=id, skill_name=name, current_level=current, target_level=target)


def test_new_user_gets_onboarding_quiz():
    items = rule_based_recommendations([], 0, 0)
    assert [r["id"] for r in items] == ["onboarding-quiz"]
    assert items[0]["confidence"] == 0.95


def test_lowest_skill_below_target_is_recommended():
    skills = [_skill(1, "Python", 60), _skill(2, "SQL", 20), _skill(3, "Excel", 90, 90)]
    items = rule_based_recommendations(skills, 1, 1)

    assert [r["id"] for r in items] == ["skill-2"]
    assert items[0]["title"] == "Focus on SQL"
    assert items[0]["metadata"]["reason"] == "Gap identified: 20% current vs 100% target"


def test_quiz_without_saved_colleges_suggests_college_search():
    items = rule_based_recommendations([], 0, 2)
    assert [r["id"] for r in items] == ["college-search"]


def test_fallback_is_padded_with_generic_items():
    items = fallback_recommendations(UserContext())
    assert [r["id"] for r in items] == ["onboarding-quiz"] + [g["id"] for g in GENERIC_RECOMMENDATIONS]
    assert len(items) <= recommendation_service.MAX_RECOMMENDATIONS


def test_experience_level_thresholds():
    assert determine_experience_level([], 0) == "beginner"
    assert determine_experience_level([_skill(1, "A", 60)], 0) == "intermediate"
    assert determine_experience_level([], 2) == "intermediate"
    assert determine_experience_level([_skill(1, "A", 80)], 0) == "advanced"
    assert determine_experience_level([], 4) == "advanced"


def test_endpoint_without_provider_uses_rules(client, auth_headers, test_user, db):
    response = client.get("/api/recommendations", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["source"] == "fallback"
    assert data["recommendations"][0]["id"] == "onboarding-quiz"

    activity = db.query(Activity).filter(Activity.user_id == test_user.id).one()
    assert activity.type == "recommendation"
    assert activity.details["source"] == "fallback"


def test_ai_recommendations_are_normalized_and_capped(client, use_provider, auth_headers):
    items = [
        {"title": f"Step {i}", "type": "unknown", "confidence": 1.7}
        for i in range(7)
    ]
    provider = use_provider(json.dumps({"recommendations": items}))

    data = client.get("/api/recommendations", headers=auth_headers).json()

    assert data["source"] == "primary"
    assert len(data["recommendations"]) == 5
    first = data["recommendations"][0]
    assert first["id"] == "ai-1"
    assert first["type"] == "career"
    assert first["confidence"] == 1.0
    assert first["action"] == "Learn More"
    assert provider.calls[0]["max_tokens"] == 1500


def test_unusable_ai_output_falls_back(client, use_provider, auth_headers):
    use_provider('{"recommendations": [{"description": "no title"}]}')
    data = client.get("/api/recommendations", headers=auth_headers).json()
    assert data["source"] == "fallback"


def test_provider_error_falls_back(client, use_provider, auth_headers):
    use_provider(RuntimeError("rate limited"))
    data = client.get("/api/recommendations", headers=auth_headers).json()
    assert data["source"] == "fallback"
    assert data["recommendations"]
