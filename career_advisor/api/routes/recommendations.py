import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.db.session import get_db
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider
from career_advisor.services import recommendation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["Recommendations"])


@router.get("")
def get_recommendations(
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    result = recommendation_service.generate(db, user_id, provider)
    return {"success": True, "recommendations": result.data, "source": result.source}
