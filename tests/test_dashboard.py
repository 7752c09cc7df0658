from datetime import datetime, timedelta

from sqlalchemy.exc import OperationalError

from career_advisor.db.models.activity import Activity
from career_advisor.db.models.roadmap import Roadmap
from career_advisor.db.models.skill import Skill
from career_advisor.services import activity_service
from career_advisor.services.dashboard_service import upcoming_tasks, weekly_progress


def test_requires_session(client):
    response = client.get("/api/dashboard")
    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required", "success": False}


def test_weekly_progress_caps_at_100():
    assert weekly_progress(0) == 0
    assert weekly_progress(3) == 30
    assert weekly_progress(25) == 100


def test_upcoming_tasks():
    now = datetime(2024, 6, 1)
    skills = [
        Skill(id=1, skill_name="Python", current_level=20, target_level=100),
        Skill(id=2, skill_name="SQL", current_level=70, target_level=75),
        Skill(id=3, skill_name="Excel", current_level=90, target_level=90),
    ]

    tasks = upcoming_tasks(skills, quiz_count=0, now=now)

    assert [t["id"] for t in tasks] == ["skill-task-1", "skill-task-2", "career-assessment"]
    assert tasks[0]["priority"] == "high"
    assert tasks[0]["estimated"] == "8 hours"
    assert tasks[1]["priority"] == "medium"
    assert tasks[1]["estimated"] == "1 hours"
    assert tasks[1]["dueDate"] == "2024-06-03T00:00:00"


def test_empty_dashboard(client, auth_headers):
    data = client.get("/api/dashboard", headers=auth_headers).json()

    assert data["success"] is True
    assert data["stats"] == {
        "completedQuizzes": 0,
        "savedColleges": 0,
        "skillsAcquired": 0,
        "achievementsUnlocked": 0,
        "roadmapProgress": 0,
        "weeklyProgress": 0,
    }
    assert data["recentActivity"] == []
    assert data["roadmapPreview"] is None
    assert [r["id"] for r in data["recommendations"]] == ["onboarding-quiz"]


def test_dashboard_reflects_stored_data(client, auth_headers, test_user, db):
    db.add_all([
        Skill(user_id=test_user.id, skill_name="Python", current_level=40, target_level=80),
        Skill(user_id=test_user.id, skill_name="SQL", current_level=60, target_level=60),
        Activity(user_id=test_user.id, type="quiz_completed", title="Quiz"),
        Activity(
            user_id=test_user.id, type="skill_updated", title="Old",
            created_at=datetime.utcnow() - timedelta(days=10),
        ),
        Roadmap(
            user_id=test_user.id, title="Data Roadmap", career_goal="Data Scientist",
            roadmap_data={"nodes": [{"id": "phase-0"}]},
        ),
    ])
    db.commit()

    data = client.get("/api/dashboard", headers=auth_headers).json()

    assert data["stats"]["skillsAcquired"] == 2
    assert data["stats"]["roadmapProgress"] == 50
    assert data["stats"]["weeklyProgress"] == 10
    assert data["recentActivity"][0]["icon"] == "🧠"
    assert len(data["recentActivity"]) == 2
    assert data["roadmapPreview"]["careerGoal"] == "Data Scientist"
    assert data["roadmapPreview"]["nodes"] == [{"id": "phase-0"}]


def test_activity_read_failure_is_an_error(client, auth_headers, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("permission denied"))

    monkeypatch.setattr(activity_service, "list_recent", broken)
    response = client.get("/api/dashboard", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Database query failed"}
