import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from career_advisor.core.gating import require_feature
from career_advisor.core.quota_guard import require_usage
from career_advisor.db.session import get_db
from career_advisor.llm.dependency import get_llm_provider
from career_advisor.llm.provider import LLMProvider
from career_advisor.schemas.chat import ChatRequest
from career_advisor.services import chat_service
from career_advisor.services.entitlement_service import get_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])


@router.post("")
def chat(
    payload: ChatRequest,
    user_id: str = Depends(require_feature("chatbot-basic")),
    _: str = Depends(require_usage("chat_message")),
    db: Session = Depends(get_db),
    provider: Optional[LLMProvider] = Depends(get_llm_provider),
):
    """
    Career assistant reply.

    Gated by the chatbot feature, and each message counts against the daily
    chat allowance.
    """
    tier = get_status(db, user_id).tier
    return chat_service.reply(payload, provider, tier)
