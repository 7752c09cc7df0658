import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.db.session import get_db
from career_advisor.schemas.college import SaveCollegeRequest
from career_advisor.services import activity_service, college_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/saved-colleges", tags=["Saved Colleges"])

REQUIRED_FIELDS = ("collegeId", "collegeName", "collegeLocation", "collegeType")


def _serialize(row: SavedCollege) -> dict:
    return {
        "id": row.id,
        "collegeId": row.college_id,
        "collegeName": row.college_name,
        "collegeLocation": row.college_location,
        "collegeType": row.college_type,
        "savedAt": row.created_at.isoformat() if row.created_at else None,
    }


@router.get("")
def list_saved(user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    try:
        rows = college_service.get_saved_colleges(db, user_id)
    except SQLAlchemyError as e:
        store_failed(db, "saved_colleges", e, "Saved colleges")
        return {"success": True, "savedColleges": [], "count": 0, "message": "Saved colleges unavailable"}

    saved = [_serialize(row) for row in rows]
    return {"success": True, "savedColleges": saved, "count": len(saved)}


@router.post("")
def save(payload: SaveCollegeRequest, user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    if any(not getattr(payload, name) for name in REQUIRED_FIELDS):
        raise ValidationFailed(f"Missing required fields: {', '.join(REQUIRED_FIELDS)}")

    fields = payload.model_dump(include=set(REQUIRED_FIELDS))
    try:
        row, created = college_service.save_college(
            db,
            user_id,
            payload.collegeId,
            payload.collegeName,
            payload.collegeLocation,
            payload.collegeType,
        )
    except SQLAlchemyError as e:
        store_failed(db, "saved_colleges", e, "Saved colleges")
        return {"success": True, "message": "College saved successfully (local)", "savedCollege": fields}

    if created:
        activity_service.record(
            db, user_id, "college_saved",
            f"Saved {payload.collegeName}",
            f"{payload.collegeLocation} ({payload.collegeType})",
            {"college_id": payload.collegeId, "college_name": payload.collegeName},
        )
    return {"success": True, "message": "College saved successfully", "savedCollege": _serialize(row)}


@router.delete("")
def remove(
    collegeId: Optional[str] = None,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    if not collegeId:
        raise ValidationFailed("College ID is required")

    try:
        removed = college_service.remove_college(db, user_id, collegeId)
    except SQLAlchemyError as e:
        store_failed(db, "saved_colleges", e, "Saved colleges")
        return {"success": True, "message": "College removed successfully (local)"}

    if removed:
        activity_service.record(
            db, user_id, "college_removed", "Removed a saved college", "",
            {"college_id": collegeId},
        )
    return {"success": True, "message": "College removed successfully", "removed": removed}
