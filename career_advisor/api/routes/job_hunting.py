"""
Job-hunting helpers: resume analysis, job matching and outreach drafts.

Each endpoint uses AI when configured and rule-based output otherwise.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import require_user_id
from career_advisor.core.fallback import store_failed
from career_advisor.db.session import get_db
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider
from career_advisor.schemas.job_hunting import AnalyzeResumeRequest, MatchResumeRequest, OutreachRequest
from career_advisor.services import job_hunting_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/job-hunting", tags=["Job Hunting"])


@router.post("/analyze-resume")
def analyze_resume(
    payload: AnalyzeResumeRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    result = job_hunting_service.analyze_resume(db, user_id, payload.resumeText, payload.fileName, provider)
    return {"success": True, **result}


@router.post("/match")
def match_resume(
    payload: MatchResumeRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    result = job_hunting_service.match_resume(
        db,
        user_id,
        payload.resumeText,
        payload.jobDescription,
        payload.jobTitle,
        payload.company,
        provider,
    )
    return {"success": True, **result}


@router.post("/outreach")
def generate_outreach(
    payload: OutreachRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    result = job_hunting_service.generate_outreach(db, user_id, payload, provider)
    return {"success": True, **result}


@router.get("/matches")
def list_matches(
    limit: int = Query(20, ge=1, le=100),
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    try:
        matches = [m.to_dict() for m in job_hunting_service.list_matches(db, user_id, limit)]
    except SQLAlchemyError as e:
        store_failed(db, "job_hunting", e, "Job matches")
        matches = []
    return {"success": True, "matches": matches, "count": len(matches)}
