"""
Dashboard aggregation.

Everything here is computed from the user's stored rows. A failed activity
read fails the whole dashboard; the other reads degrade to empty lists.
"""
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.fallback import settled, store_failed
from career_advisor.db.models.achievement import Achievement
from career_advisor.db.models.activity import Activity
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.roadmap import Roadmap
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.db.models.skill import Skill
from career_advisor.services import activity_service
from career_advisor.services.recommendation_service import rule_based_recommendations

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 20
WEEKLY_ACTIVITY_TARGET = 10
MAX_DASHBOARD_RECOMMENDATIONS = 3
MAX_SKILL_TASKS = 3
MAX_TASKS = 5
SKILL_PREVIEW_LIMIT = 6

ACTIVITY_STYLE = {
    "roadmap_generated": ("🗺️", "blue"),
    "quiz_completed": ("🧠", "green"),
    "job_analyzed": ("📄", "purple"),
    "achievement_unlocked": ("🏆", "yellow"),
    "skill_updated": ("🔧", "indigo"),
    "college_saved": ("🎓", "pink"),
    "college_removed": ("🎓", "pink"),
}


def weekly_progress(week_count: int) -> int:
    """Percent of the weekly activity target reached, capped at 100."""
    return min(100, round(week_count / WEEKLY_ACTIVITY_TARGET * 100))


def _format_activity(activity: Activity) -> Dict[str, Any]:
    icon, color = ACTIVITY_STYLE.get(activity.type, ("📌", "gray"))
    return {
        "id": activity.id,
        "type": activity.type,
        "title": activity.title,
        "description": activity.description,
        "timestamp": activity.created_at.isoformat() if activity.created_at else None,
        "icon": icon,
        "color": color,
        "metadata": activity.details or {},
    }


def upcoming_tasks(skills: List[Skill], quiz_count: int, now: datetime) -> List[Dict[str, Any]]:
    """Practice tasks for skills below target, plus the assessment if no quiz was taken."""
    tasks = []
    below_target = [s for s in skills if s.current_level < s.target_level][:MAX_SKILL_TASKS]
    for index, skill in enumerate(below_target):
        tasks.append({
            "id": f"skill-task-{skill.id}",
            "title": f"Practice {skill.skill_name}",
            "type": "practice",
            "priority": "high" if skill.current_level < 30 else "medium",
            "dueDate": (now + timedelta(days=index + 1)).isoformat(),
            "estimated": f"{math.ceil((skill.target_level - skill.current_level) / 10)} hours",
        })

    if quiz_count == 0:
        tasks.append({
            "id": "career-assessment",
            "title": "Complete Career Assessment",
            "type": "study",
            "priority": "high",
            "dueDate": (now + timedelta(days=1)).isoformat(),
            "estimated": "20 minutes",
        })
    return tasks[:MAX_TASKS]


def build_dashboard(db: Session, user_id: str, now: datetime = None) -> Dict[str, Any]:
    """
    Aggregate stats, recent activity, recommendations and tasks.

    Raises:
        AppError 500: The activity log could not be read
    """
    now = now or datetime.utcnow()
    try:
        activities = activity_service.list_recent(db, user_id, RECENT_ACTIVITY_LIMIT)
        week_count = activity_service.count_last_days(db, user_id, 7, now)
    except SQLAlchemyError as e:
        store_failed(db, "dashboard", e, f"Dashboard activity read for user_id={user_id}")
        activities, week_count = [], 0

    quiz_count = settled(
        db, "Dashboard quizzes",
        lambda: db.query(QuizResult).filter(QuizResult.user_id == user_id).count(), 0,
    )
    saved_count = settled(
        db, "Dashboard saved colleges",
        lambda: db.query(SavedCollege).filter(SavedCollege.user_id == user_id).count(), 0,
    )
    skills = settled(
        db, "Dashboard skills",
        lambda: db.query(Skill)
        .filter(Skill.user_id == user_id)
        .order_by(Skill.updated_at.desc(), Skill.id.desc())
        .all(),
        [],
    )
    achievement_count = settled(
        db, "Dashboard achievements",
        lambda: db.query(Achievement).filter(Achievement.user_id == user_id).count(), 0,
    )
    latest_roadmap = settled(
        db, "Dashboard roadmap",
        lambda: db.query(Roadmap)
        .filter(Roadmap.user_id == user_id)
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .first(),
        None,
    )

    roadmap_progress = round(sum(s.current_level for s in skills) / len(skills)) if skills else 0
    stats = {
        "completedQuizzes": quiz_count,
        "savedColleges": saved_count,
        "skillsAcquired": len(skills),
        "achievementsUnlocked": achievement_count,
        "roadmapProgress": roadmap_progress,
        "weeklyProgress": weekly_progress(week_count),
    }
    logger.info(f"Dashboard stats for user_id={user_id}: {stats}")

    return {
        "success": True,
        "stats": stats,
        "recentActivity": [_format_activity(a) for a in activities],
        "skillProgress": [
            {
                "id": s.id,
                "name": s.skill_name,
                "current": s.current_level,
                "target": s.target_level,
                "category": s.category,
            }
            for s in skills[:SKILL_PREVIEW_LIMIT]
        ],
        "recommendations": rule_based_recommendations(skills, saved_count, quiz_count)[:MAX_DASHBOARD_RECOMMENDATIONS],
        "upcomingTasks": upcoming_tasks(skills, quiz_count, now),
        "roadmapPreview": {
            "id": latest_roadmap.id,
            "title": latest_roadmap.title,
            "progress": latest_roadmap.progress,
            "careerGoal": latest_roadmap.career_goal,
            "nodes": (latest_roadmap.roadmap_data or {}).get("nodes", []),
        } if latest_roadmap else None,
    }
