"""
Payment provider webhooks.

Signatures are verified before anything is read from the body. A verified
event that fails to process answers 400 so the provider retries it.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.errors import ValidationFailed
from career_advisor.db.session import get_db
from career_advisor.services import billing_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhooks", tags=["Webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    event = billing_service.verify_stripe_event(payload, stripe_signature)

    try:
        billing_service.handle_stripe_event(db, event)
    except (SQLAlchemyError, KeyError, TypeError, ValueError) as e:
        db.rollback()
        logger.error(f"Stripe webhook processing failed: type={event.get('type')}, error={e}", exc_info=True)
        raise ValidationFailed("Webhook processing failed")

    return {"received": True}


@router.post("/razorpay")
async def razorpay_webhook(
    request: Request,
    x_razorpay_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
):
    payload = await request.body()
    event = billing_service.verify_razorpay_signature(payload, x_razorpay_signature)

    try:
        billing_service.handle_razorpay_event(db, event)
    except (SQLAlchemyError, KeyError, TypeError, ValueError) as e:
        db.rollback()
        logger.error(f"Razorpay webhook processing failed: event={event.get('event')}, error={e}", exc_info=True)
        raise ValidationFailed("Webhook processing failed")

    return {"received": True}
