import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.session import get_db
from career_advisor.schemas.activity import LogActivityRequest
from career_advisor.services import activity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/activity", tags=["Activity"])


@router.get("")
def list_activity(
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    try:
        activities = activity_service.list_recent(db, user_id, limit, offset)
        total = activity_service.count_for_user(db, user_id)
    except SQLAlchemyError as e:
        store_failed(db, "activity", e, "Activity API")
        return {
            "activities": [],
            "total": 0,
            "hasMore": False,
            "pagination": {"limit": limit, "offset": offset, "total": 0},
            "error": "Database query failed",
        }

    return {
        "activities": [a.to_dict() for a in activities],
        "total": total,
        "hasMore": offset + limit < total,
        "pagination": {"limit": limit, "offset": offset, "total": total},
    }


@router.post("")
def log_activity(
    payload: LogActivityRequest,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    if not payload.type or not payload.title or payload.description is None:
        raise ValidationFailed("Missing required fields: type, title, description")
    if payload.type not in activity_service.ACTIVITY_TYPES:
        raise ValidationFailed(
            f"Invalid activity type. Must be one of: {', '.join(activity_service.ACTIVITY_TYPES)}"
        )

    activity = activity_service.record(
        db, user_id, payload.type, payload.title, payload.description, payload.metadata
    )
    if activity is None:
        return {
            "success": True,
            "message": "Activity logged successfully (local)",
            "activity": payload.model_dump(),
        }
    return {"success": True, "message": "Activity logged successfully", "activity": activity.to_dict()}
