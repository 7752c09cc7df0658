"""
College search and quick save/remove endpoints.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.session import get_db
from career_advisor.schemas.college import CollegeActionRequest
from career_advisor.services import activity_service, college_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/colleges", tags=["Colleges"])

SOURCE_LABELS = {"primary": "database", "fallback": "mock"}


@router.get("")
def list_colleges(
    page: int = Query(1, ge=1),
    limit: int = Query(college_service.DEFAULT_PAGE_SIZE, ge=1, le=100),
    search: str = "",
    major: str = "",
    state: str = "",
    db: Session = Depends(get_db),
):
    result, total = college_service.search_colleges(db, page, limit, search, major, state)
    return {
        "success": True,
        "colleges": result.data,
        "total": total,
        "page": page,
        "limit": limit,
        "source": SOURCE_LABELS[result.source],
    }


@router.post("")
def college_action(
    payload: CollegeActionRequest,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    """
    Save or remove a college for the current user.

    Store failures after retrying answer success with fallback=true.
    """
    if not payload.action or not payload.collegeId:
        raise ValidationFailed("Missing required fields: action, collegeId")
    if payload.action not in ("save", "remove"):
        raise ValidationFailed('Invalid action. Must be "save" or "remove"')

    logger.info(f"{payload.action} college: college_id={payload.collegeId}, user_id={user_id}")

    if payload.action == "save":
        try:
            row, created = college_service.save_college(
                db,
                user_id,
                payload.collegeId,
                payload.collegeName or "",
                payload.collegeLocation or "",
                payload.collegeType or "",
            )
        except SQLAlchemyError as e:
            store_failed(db, "colleges", e, "College save")
            return {
                "success": True,
                "message": "College saved successfully (local fallback)",
                "data": None,
                "fallback": True,
            }

        if not created:
            return {
                "success": True,
                "message": "College already saved",
                "data": row.to_dict(),
                "alreadyExists": True,
            }

        activity_service.record(
            db, user_id, "college_saved",
            f"Saved {payload.collegeName or 'a college'}",
            "Added to your saved colleges",
            {"college_id": payload.collegeId, "college_name": payload.collegeName},
        )
        return {"success": True, "message": "College saved successfully", "data": row.to_dict()}

    try:
        removed = college_service.remove_college(db, user_id, payload.collegeId)
    except SQLAlchemyError as e:
        store_failed(db, "colleges", e, "College remove")
        return {"success": True, "message": "College removed successfully (local fallback)", "fallback": True}

    if not removed:
        return {"success": True, "message": "College was not in saved list", "notFound": True}

    activity_service.record(
        db, user_id, "college_removed",
        f"Removed {payload.collegeName or 'a college'}",
        "Removed from your saved colleges",
        {"college_id": payload.collegeId},
    )
    return {"success": True, "message": "College removed successfully"}
