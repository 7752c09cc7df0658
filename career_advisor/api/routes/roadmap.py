import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo, is_demo_user
from career_advisor.core.errors import AppError, NotFound, UsageLimitExceeded
from career_advisor.core.tiers import ROADMAPS_CREATED
from career_advisor.db.models.roadmap import Roadmap
from career_advisor.db.session import get_db
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider
from career_advisor.schemas.roadmap import RoadmapRequest
from career_advisor.services import roadmap_service, usage_service
from career_advisor.services.entitlement_service import get_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/roadmap", tags=["Roadmap"])


@router.post("/generate")
def generate_roadmap(
    payload: RoadmapRequest,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    """
    Generate and store an AI roadmap.

    Signed-in users are metered against their daily roadmap allowance; the
    demo user is not. The career goal is checked before the allowance.
    """
    roadmap_service.require_career_goal(payload)

    tier = get_status(db, user_id).tier
    metered = not is_demo_user(user_id)
    if metered:
        decision = usage_service.check_limit(db, user_id, "roadmap_creation")
        if not decision.allowed:
            raise UsageLimitExceeded(decision.reason or "Usage limit exceeded", current_tier=tier)

    logger.info(f"Generating roadmap: user_id={user_id}, goal={payload.careerGoal}, tier={tier}")
    roadmap = roadmap_service.create_roadmap(db, user_id, payload, provider, tier)

    if metered:
        usage_service.track(db, user_id, ROADMAPS_CREATED)
    return {"roadmap": roadmap, "success": True}


@router.get("")
def list_roadmaps(user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    try:
        roadmaps = [r.to_dict() for r in roadmap_service.list_roadmaps(db, user_id)]
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Roadmap list failed for user_id={user_id}: {e}")
        raise AppError(f"Database error: {e}", original_error=e)
    return {"roadmaps": roadmaps, "count": len(roadmaps), "success": True}


@router.get("/{roadmap_id}")
def get_roadmap(roadmap_id: int, user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    roadmap = db.query(Roadmap).filter(Roadmap.id == roadmap_id, Roadmap.user_id == user_id).first()
    if roadmap is None:
        raise NotFound("Roadmap not found")
    return {"roadmap": roadmap.to_dict(), "success": True}
