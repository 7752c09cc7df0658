import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_current_user_obj
from career_advisor.db.models.user import User
from career_advisor.db.session import get_db
from career_advisor.schemas.billing import CreateCheckoutRequest, CreateCheckoutResponse
from career_advisor.services.billing_service import create_checkout_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post("/create-checkout", response_model=CreateCheckoutResponse)
def create_checkout(
    payload: CreateCheckoutRequest,
    user: User = Depends(get_current_user_obj),
    db: Session = Depends(get_db),
):
    """
    Start checkout for a paid tier.

    Requires a real session. Razorpay is currently disabled and answers 503.
    """
    logger.info(f"Checkout requested: user_id={user.id}, tier={payload.tier}, provider={payload.provider}")
    return create_checkout_session(db, user, payload.tier, payload.billing, payload.provider)
