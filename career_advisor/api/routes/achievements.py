"""
Achievement endpoints.

GET evaluates progress without writing anything; POST awards one
achievement (or, with checkOnly, reports whether it is already held).
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.models.achievement import Achievement
from career_advisor.db.session import get_db
from career_advisor.schemas.achievement import AwardAchievementRequest
from career_advisor.services import achievement_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/achievements", tags=["Achievements"])


def _serialize(row: Achievement) -> dict:
    return {
        "id": row.id,
        "achievementId": row.achievement_id,
        "title": row.title,
        "rarity": row.rarity,
        "progress": row.progress,
        "maxProgress": row.max_progress,
        "unlockedAt": row.unlocked_at.isoformat() if row.unlocked_at else None,
    }


@router.get("")
def get_achievements(user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    try:
        result = achievement_service.evaluate(db, user_id)
    except SQLAlchemyError as e:
        store_failed(db, "achievements", e, "Achievements API")
        result = achievement_service.evaluate_offline()
    return {"success": True, **result}


@router.post("")
def award_achievement(
    payload: AwardAchievementRequest,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    if payload.checkOnly:
        existing = db.query(Achievement).filter(
            Achievement.user_id == user_id,
            Achievement.achievement_id == payload.achievementId,
        ).first()
        return {
            "hasAchievement": existing is not None,
            "achievement": _serialize(existing) if existing else None,
        }

    definition = achievement_service.ACHIEVEMENTS.get(payload.achievementId or "")
    if definition is None:
        raise ValidationFailed("Invalid achievement ID")

    try:
        row = achievement_service.award(db, user_id, definition.id)
    except SQLAlchemyError as e:
        store_failed(db, "achievements", e, "Achievements API (award)")
        return {
            "success": True,
            "message": "Achievement awarded (local)",
            "achievement": achievement_service.describe(definition),
        }

    return {"success": True, "message": "Achievement unlocked!", "achievement": _serialize(row)}
