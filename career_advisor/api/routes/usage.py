"""
Usage tracking endpoint.

Provides today's usage against the tier limits for the signed-in user.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import require_user_id
from career_advisor.db.session import get_db
from career_advisor.services.usage_service import get_usage_for_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/usage", tags=["Usage"])


@router.get("", status_code=status.HTTP_200_OK)
def get_usage(user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    """
    Get today's usage for the authenticated user.

    Returns:
    - tier: Current subscription tier (free, basic, premium, elite)
    - date: Day the counters belong to, YYYY-MM-DD
    - usage: Metric name -> {used, limit, unlimited}

    Requires authentication via Bearer token or session cookie.
    """
    usage_data = get_usage_for_response(db, user_id)
    logger.debug(f"Usage summary requested: user_id={user_id}, tier={usage_data['tier']}")
    return usage_data
