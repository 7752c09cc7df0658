import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import require_user_id
from career_advisor.db.session import get_db
from career_advisor.services.dashboard_service import build_dashboard

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])


@router.get("")
def get_dashboard(user_id: str = Depends(require_user_id), db: Session = Depends(get_db)):
    """
    Dashboard for the signed-in user, built only from stored data.

    Requires a session; the demo user is never substituted.
    """
    logger.info(f"Dashboard requested: user_id={user_id}")
    return build_dashboard(db, user_id)
