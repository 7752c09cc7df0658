import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.db.session import get_db
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider
from career_advisor.schemas.quiz import QuizSubmitResponse
from career_advisor.services import quiz_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quiz", tags=["Quiz"])


@router.post("/submit", response_model=QuizSubmitResponse)
async def submit_quiz(
    request: Request,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    """
    Score a career quiz.

    Always answers 200: a malformed body is scored with default answers and a
    failed analysis falls back to rule-based scoring.
    """
    raw = await request.body()
    try:
        payload = json.loads(raw) if raw else {}
    except ValueError:
        logger.warning("Quiz body is not valid JSON, using defaults")
        payload = {}

    submission = quiz_service.parse_submission(payload)
    result = quiz_service.analyze(submission, provider)
    quiz_service.save_results(db, user_id, submission, result.data)

    logger.info(f"Quiz scored: user_id={user_id}, source={result.source}")
    return QuizSubmitResponse(recommendations=result.data, source=result.source)
