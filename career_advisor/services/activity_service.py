"""
Append-only activity log.

Recording never fails the calling request: store errors are logged and
reported through the return value. The demo user's activities are not stored.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import is_demo_user
from career_advisor.core.fallback import store_failed
from career_advisor.db.models.activity import Activity

logger = logging.getLogger(__name__)

ACTIVITY_TYPES = [
    "roadmap_generated",
    "quiz_completed",
    "job_analyzed",
    "skill_updated",
    "college_saved",
    "college_removed",
    "achievement_unlocked",
    "recommendation",
]


def record(
    db: Session,
    user_id: str,
    activity_type: str,
    title: str,
    description: str = "",
    metadata: Optional[Dict[str, Any]] = None,
) -> Optional[Activity]:
    """
    Append one activity row.

    Returns:
        The stored Activity, or None when nothing was stored (demo user or store failure)
    """
    if not user_id or is_demo_user(user_id):
        logger.debug(f"Demo user activity (not saved): {title}")
        return None

    try:
        activity = Activity(
            user_id=user_id,
            type=activity_type,
            title=title,
            description=description or "",
            details=metadata or {},
        )
        db.add(activity)
        db.commit()
        db.refresh(activity)
        logger.info(f"Activity logged: user_id={user_id}, type={activity_type}, title={title}")
        return activity
    except SQLAlchemyError as e:
        store_failed(db, "activity", e, "Activity logging")
        return None


def list_recent(db: Session, user_id: str, limit: int = 10, offset: int = 0) -> List[Activity]:
    """Newest activities first."""
    return (
        db.query(Activity)
        .filter(Activity.user_id == user_id)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def count_for_user(db: Session, user_id: str) -> int:
    return db.query(Activity).filter(Activity.user_id == user_id).count()


def count_since(db: Session, user_id: str, since: datetime) -> int:
    return db.query(Activity).filter(
        Activity.user_id == user_id,
        Activity.created_at >= since,
    ).count()


def count_last_days(db: Session, user_id: str, days: int, now: datetime = None) -> int:
    now = now or datetime.utcnow()
    return count_since(db, user_id, now - timedelta(days=days))
