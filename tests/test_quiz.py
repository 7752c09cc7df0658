"""
Tests for rule-based quiz scoring and POST /api/quiz/submit.
"""
import json
import random

from career_advisor.db.models.activity import Activity
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.skill import Skill
from career_advisor.schemas.quiz import QuizSubmission
from career_advisor.services import quiz_scoring, quiz_service


AI_RESULT = {
    "primaryCareer": {"title": "Machine Learning Engineer", "match": 88, "skills": ["Python"]},
    "alternativeCareers": [{"title": "Data Scientist", "match": 80}],
    "aiAnalysis": {"summary": "Strong analytical profile"},
}


def test_interest_and_skill_matches_rank_primary_career():
    result = quiz_scoring.score([], {
        "interests": ["Programming"],
        "skills": ["Programming"],
        "experience": "intermediate",
    })

    assert result["primaryCareer"]["title"] == "Software Developer"
    assert result["primaryCareer"]["match"] == 75
    assert [c["title"] for c in result["alternativeCareers"]] == [
        "Data Analyst", "UX Designer", "Digital Marketing Specialist",
    ]
    assert [c["match"] for c in result["alternativeCareers"]] == [50, 50, 50]
    assert result["skillGaps"][0] == {
        "skill": "Advanced Programming",
        "priority": "high",
        "description": "Develop deeper expertise in programming",
    }
    assert result["skillGaps"][1]["skill"] == "Logic"
    assert len(result["nextSteps"]) == 5


def test_scores_are_clamped_to_100():
    result = quiz_scoring.score([], {
        "interests": ["programming", "technology", "coding", "computers", "problem-solving"],
        "skills": ["Programming", "Logic", "Problem Solving"],
        "experience": "advanced",
    })
    assert result["primaryCareer"]["match"] == 100


def test_beginner_bonus_stays_within_ten_points():
    result = quiz_scoring.score([], {"experience": "beginner"}, random.Random(7))
    for career in [result["primaryCareer"], *result["alternativeCareers"]]:
        assert 50 <= career["match"] <= 60


def test_missing_personal_info_uses_defaults():
    result = quiz_scoring.score(None, None, random.Random(1))
    assert result["primaryCareer"]["title"] in {c["title"] for c in quiz_scoring.CAREER_CATALOG}


def test_non_object_payload_becomes_default_submission():
    submission = quiz_service.parse_submission(["not", "an", "object"])
    assert submission == QuizSubmission()
    assert submission.personalInfo.experience == "beginner"

    bad_types = quiz_service.parse_submission({"responses": "oops"})
    assert bad_types.responses == []


def test_ai_analysis_accepts_fenced_json():
    provider_reply = f"```json\n{json.dumps(AI_RESULT)}\n```"

    class Provider:
        def complete(self, system, prompt, **kwargs):
            self.kwargs = kwargs
            return provider_reply

    provider = Provider()
    result = quiz_service.analyze(QuizSubmission(), provider)

    assert result.source == "primary"
    assert result.data["primaryCareer"]["title"] == "Machine Learning Engineer"
    assert result.data["skillGaps"] == []
    assert provider.kwargs["temperature"] == 0.3
    assert provider.kwargs["max_tokens"] == 2000


def test_ai_without_primary_title_falls_back_to_rules():
    class Provider:
        def complete(self, system, prompt, **kwargs):
            return '{"primaryCareer": {"match": 90}}'

    result = quiz_service.analyze(QuizSubmission(), Provider(), random.Random(3))
    assert result.source == "fallback"
    assert result.data["primaryCareer"]["title"] in {c["title"] for c in quiz_scoring.CAREER_CATALOG}


def test_scoring_failure_returns_default_result(monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("scoring broke")

    monkeypatch.setattr(quiz_scoring, "score", explode)
    result = quiz_service.analyze(QuizSubmission(), None)

    assert result.source == "fallback"
    assert result.data["primaryCareer"]["title"] == "Software Developer"
    assert result.data["primaryCareer"]["match"] == 85


def test_submit_malformed_body_still_succeeds(client):
    response = client.post(
        "/api/quiz/submit",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["source"] == "fallback"
    assert "primaryCareer" in data["recommendations"]


def test_submit_persists_result_skills_and_activity(client, use_provider, auth_headers, test_user, db):
    use_provider(json.dumps(AI_RESULT))

    response = client.post("/api/quiz/submit", headers=auth_headers, json={
        "quizType": "career_assessment",
        "responses": [{"questionId": 1, "answer": "I like data"}],
        "personalInfo": {"interests": ["AI"], "skills": ["Python"], "experience": "intermediate"},
    })

    assert response.status_code == 200
    assert response.json()["source"] == "primary"

    result = db.query(QuizResult).filter(QuizResult.user_id == test_user.id).one()
    assert result.career_path == "Machine Learning Engineer"
    assert result.score == 88

    skill = db.query(Skill).filter(Skill.user_id == test_user.id).one()
    assert skill.skill_name == "Python"
    assert skill.category == "Quiz Assessment"
    assert 78 <= skill.current_level <= 98
    assert skill.target_level == min(100, skill.current_level + 20)

    activity = db.query(Activity).filter(Activity.user_id == test_user.id).one()
    assert activity.type == "quiz_completed"


def test_repeated_quiz_skills_are_stored_once(client, auth_headers, test_user, db):
    response = client.post("/api/quiz/submit", headers=auth_headers, json={
        "personalInfo": {"skills": ["Programming", "Programming", "Design"]},
    })

    assert response.status_code == 200
    names = sorted(s.skill_name for s in db.query(Skill).filter(Skill.user_id == test_user.id))
    assert names == ["Design", "Programming"]


def test_demo_user_quiz_is_not_persisted(client, db):
    response = client.post("/api/quiz/submit", json={"personalInfo": {"skills": ["Python"]}})

    assert response.status_code == 200
    assert db.query(QuizResult).count() == 0
    assert db.query(Skill).count() == 0
    assert db.query(Activity).count() == 0


def test_programming_beginner_gets_software_developer(client):
    response = client.post("/api/quiz/submit", json={
        "personalInfo": {
            "interests": ["Technology", "Programming"],
            "skills": ["Programming"],
            "experience": "beginner",
        },
    })

    primary = response.json()["recommendations"]["primaryCareer"]
    assert primary["title"] == "Software Developer"
    assert primary["match"] >= 90


def test_empty_body_still_has_primary_career(client):
    response = client.post("/api/quiz/submit")

    assert response.status_code == 200
    assert response.json()["recommendations"]["primaryCareer"]["title"]
