"""
Subscription status and self-service changes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo, require_user_id
from career_advisor.core.errors import ValidationFailed
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.session import get_db
from career_advisor.schemas.billing import SubscriptionActionRequest
from career_advisor.services import entitlement_service, usage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subscription", tags=["Subscription"])

ACTION_MESSAGES = {
    "cancel": "Subscription canceled successfully",
    "reactivate": "Subscription reactivated successfully",
    "upgrade": "Subscription upgraded successfully",
}


def _serialize(subscription: Optional[Subscription]) -> Optional[dict]:
    if subscription is None:
        return None
    return {
        "id": subscription.id,
        "tier": subscription.tier,
        "status": subscription.status,
        "billing": subscription.billing,
        "amount": subscription.amount,
        "currency": subscription.currency,
        "paymentProvider": subscription.payment_provider,
        "currentPeriodStart": subscription.start_date.isoformat() if subscription.start_date else None,
        "currentPeriodEnd": subscription.end_date.isoformat() if subscription.end_date else None,
        "cancelAtPeriodEnd": subscription.status == "canceled",
    }


@router.get("")
def get_subscription(user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    status = entitlement_service.get_status(db, user_id)
    return {
        "subscription": _serialize(entitlement_service.get_current_subscription(db, user_id)),
        "status": status.to_dict(),
        "usage": usage_service.get_stats(db, user_id),
    }


@router.put("")
def update_subscription(
    payload: SubscriptionActionRequest,
    user_id: str = Depends(require_user_id),
    db: Session = Depends(get_db),
):
    if payload.action == "cancel":
        subscription = entitlement_service.cancel_subscription(db, user_id, payload.reason or "user_requested")
    elif payload.action == "reactivate":
        subscription = entitlement_service.reactivate_subscription(db, user_id)
    elif payload.action == "upgrade":
        subscription = entitlement_service.upgrade_subscription(db, user_id, payload.tier)
    else:
        raise ValidationFailed("Invalid action")

    logger.info(f"Subscription {payload.action}: user_id={user_id}")
    return {"subscription": _serialize(subscription), "message": ACTION_MESSAGES[payload.action]}
