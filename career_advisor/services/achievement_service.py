"""
Achievement evaluation and award.

evaluate() derives progress from current counts on every read and never
writes. award() is the only path that persists an unlock.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from career_advisor.core.errors import ValidationFailed
from career_advisor.db.models.achievement import Achievement
from career_advisor.db.models.activity import Activity
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.db.models.skill import Skill
from career_advisor.services import activity_service

logger = logging.getLogger(__name__)

RARITY_POINTS = {
    "common": 10,
    "rare": 25,
    "epic": 50,
    "legendary": 100,
}

MAX_AVAILABLE = 6


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    rarity: str
    category: str
    requirements: str


ACHIEVEMENTS: Dict[str, AchievementDefinition] = {
    definition.id: definition
    for definition in [
        AchievementDefinition(
            "first-login", "Welcome Aboard!", "Started your career discovery journey",
            "common", "Getting Started", "Create your account",
        ),
        AchievementDefinition(
            "quiz-master", "Quiz Master", "Complete 5 career quizzes",
            "rare", "Learning", "Complete 5 quizzes",
        ),
        AchievementDefinition(
            "college-explorer", "College Explorer", "Save 10 colleges to your wishlist",
            "rare", "Exploration", "Save 10 colleges",
        ),
        AchievementDefinition(
            "skill-achiever", "Skill Achiever", "Reach target level in 3 skills",
            "epic", "Skills", "Master 3 skills",
        ),
        AchievementDefinition(
            "consistent-learner", "Consistent Learner", "Stay active for 7 consecutive days",
            "rare", "Dedication", "Be active 7 days",
        ),
        AchievementDefinition(
            "career-focused", "Career Focused", "Master multiple skills and explore various colleges",
            "legendary", "Mastery", "Track 5 skills, save 5 colleges and log 10 activities",
        ),
    ]
}

# Counts needed for 100% progress
QUIZ_MASTER_QUIZZES = 5
COLLEGE_EXPLORER_COLLEGES = 10
SKILL_ACHIEVER_SKILLS = 3
CONSISTENT_LEARNER_ACTIVITIES = 7
CAREER_FOCUSED_SKILLS = 5
CAREER_FOCUSED_COLLEGES = 5
CAREER_FOCUSED_ACTIVITIES = 10


def progress_for(count: int, threshold: int) -> float:
    """min(100, 100 * count / threshold)."""
    if threshold <= 0:
        return 100.0
    return min(100.0, 100 * max(0, count) / threshold)


@dataclass
class UserCounts:
    activities: int = 0
    recent_activities: int = 0
    quizzes: int = 0
    saved_colleges: int = 0
    skills: int = 0
    skills_at_target: int = 0


def gather_counts(db: Session, user_id: str, now: datetime = None) -> UserCounts:
    now = now or datetime.utcnow()
    week_ago = now - timedelta(days=7)
    return UserCounts(
        activities=db.query(Activity).filter(Activity.user_id == user_id).count(),
        recent_activities=db.query(Activity).filter(
            Activity.user_id == user_id, Activity.created_at > week_ago
        ).count(),
        quizzes=db.query(QuizResult).filter(QuizResult.user_id == user_id).count(),
        saved_colleges=db.query(SavedCollege).filter(SavedCollege.user_id == user_id).count(),
        skills=db.query(Skill).filter(Skill.user_id == user_id).count(),
        skills_at_target=db.query(Skill).filter(
            Skill.user_id == user_id, Skill.current_level >= Skill.target_level
        ).count(),
    )


def compute_progress(counts: UserCounts) -> Dict[str, float]:
    """Progress (0-100) for every achievement from aggregate counts."""
    return {
        "first-login": 100 if counts.activities > 0 else 0,
        "quiz-master": progress_for(counts.quizzes, QUIZ_MASTER_QUIZZES),
        "college-explorer": progress_for(counts.saved_colleges, COLLEGE_EXPLORER_COLLEGES),
        "skill-achiever": progress_for(counts.skills_at_target, SKILL_ACHIEVER_SKILLS),
        "consistent-learner": progress_for(counts.recent_activities, CONSISTENT_LEARNER_ACTIVITIES),
        # Slowest of the three requirements
        "career-focused": min(
            progress_for(counts.skills, CAREER_FOCUSED_SKILLS),
            progress_for(counts.saved_colleges, CAREER_FOCUSED_COLLEGES),
            progress_for(counts.activities, CAREER_FOCUSED_ACTIVITIES),
        ),
    }


def describe(definition: AchievementDefinition, progress: float = 100, unlocked_at: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": definition.id,
        "title": definition.title,
        "description": definition.description,
        "rarity": definition.rarity,
        "category": definition.category,
        "requirements": definition.requirements,
        "progress": progress,
        "maxProgress": 100,
        "points": RARITY_POINTS.get(definition.rarity, 10),
        "unlockedAt": unlocked_at.isoformat() if unlocked_at else None,
    }


def get_unlocked(db: Session, user_id: str) -> List[Achievement]:
    return (
        db.query(Achievement)
        .filter(Achievement.user_id == user_id)
        .order_by(Achievement.unlocked_at.desc())
        .all()
    )


def evaluate(db: Session, user_id: str, now: datetime = None) -> Dict[str, Any]:
    """
    Current achievement state for a user. Read-only.

    Returns:
        completed: persisted unlocks
        inProgress: 0 < progress < 100 and not unlocked
        available: progress 0 and not unlocked (at most 6)
        ready: computed 100% but not yet awarded
        stats: totalCompleted, totalAvailable, completionRate, pointsEarned
    """
    progress = compute_progress(gather_counts(db, user_id, now))
    unlocked = {row.achievement_id: row for row in get_unlocked(db, user_id)}
    return summarize(progress, unlocked)


def evaluate_offline() -> Dict[str, Any]:
    """Evaluation for a user with no stored data, used when the store is down."""
    return summarize(compute_progress(UserCounts()), {})


def summarize(progress: Dict[str, float], unlocked: Dict[str, Achievement]) -> Dict[str, Any]:
    completed = []
    for achievement_id, row in unlocked.items():
        definition = ACHIEVEMENTS.get(achievement_id)
        if definition is None:
            continue
        completed.append(describe(definition, 100, row.unlocked_at))

    in_progress, available, ready = [], [], []
    for achievement_id, definition in ACHIEVEMENTS.items():
        if achievement_id in unlocked:
            continue
        value = progress[achievement_id]
        if value >= 100:
            ready.append(describe(definition, value))
        elif value > 0:
            in_progress.append(describe(definition, value))
        else:
            available.append(describe(definition, value))

    total = len(ACHIEVEMENTS)
    points = sum(item["points"] for item in completed)
    return {
        "completed": completed,
        "inProgress": in_progress,
        "available": available[:MAX_AVAILABLE],
        "ready": ready,
        "stats": {
            "totalCompleted": len(completed),
            "totalAvailable": total,
            "completionRate": round(len(completed) / total * 100) if total else 0,
            "pointsEarned": points,
        },
    }


def award(db: Session, user_id: str, achievement_id: str) -> Achievement:
    """
    Persist an unlock (idempotent) and log it as an activity.

    Raises:
        ValidationFailed: Unknown achievement id
    """
    definition = ACHIEVEMENTS.get(achievement_id)
    if definition is None:
        raise ValidationFailed("Invalid achievement ID")

    existing = db.query(Achievement).filter(
        Achievement.user_id == user_id,
        Achievement.achievement_id == achievement_id,
    ).first()
    if existing is not None:
        return existing

    row = Achievement(
        user_id=user_id,
        achievement_id=achievement_id,
        title=definition.title,
        rarity=definition.rarity,
        progress=100,
        max_progress=100,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Awarded concurrently
        db.rollback()
        return db.query(Achievement).filter(
            Achievement.user_id == user_id,
            Achievement.achievement_id == achievement_id,
        ).one()
    db.refresh(row)

    logger.info(f"Achievement unlocked: user_id={user_id}, achievement={achievement_id}")
    activity_service.record(
        db,
        user_id,
        "achievement_unlocked",
        f"Unlocked: {definition.title}",
        definition.description,
        {"achievement_id": achievement_id, "rarity": definition.rarity,
         "points": RARITY_POINTS.get(definition.rarity, 10)},
    )
    return row
