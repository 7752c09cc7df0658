"""
Entitlement resolution and subscription lifecycle.

Resolves a user's active tier, features and limits, answers feature-access
questions, and applies create/cancel/reactivate/upgrade transitions. Lookups
never raise: any store failure degrades to the free tier.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.errors import NotFound, ValidationFailed
from career_advisor.core.tiers import (
    BILLING_PERIODS,
    TIER_ORDER,
    allowed_tiers_for,
    get_tier,
    get_tier_price,
    normalize_tier,
)
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.models.user import User

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionStatus:
    tier: str
    is_active: bool
    expires_at: Optional[datetime]
    features: List[str] = field(default_factory=list)
    limits: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["expires_at"] = self.expires_at.isoformat() if self.expires_at else None
        return data


@dataclass
class AccessDecision:
    allowed: bool
    reason: Optional[str] = None


def free_status() -> SubscriptionStatus:
    tier = get_tier("free")
    return SubscriptionStatus(
        tier="free",
        is_active=True,
        expires_at=None,
        features=list(tier["features"]),
        limits=dict(tier["limits"]),
    )


def _status_for(tier_name: str, expires_at: Optional[datetime]) -> SubscriptionStatus:
    tier = get_tier(tier_name)
    return SubscriptionStatus(
        tier=normalize_tier(tier_name),
        is_active=True,
        expires_at=expires_at,
        features=list(tier["features"]),
        limits=dict(tier["limits"]),
    )


def get_status(db: Session, user_id: str, now: datetime = None) -> SubscriptionStatus:
    """
    Resolve the user's current entitlement.

    A missing user, an inactive status, or an expiry in the past resolves to
    free. A lapsed paid subscription is written back to the user record as
    tier "free", status "expired".
    """
    now = now or datetime.utcnow()
    try:
        user = db.get(User, user_id)
        if user is None:
            return free_status()

        tier = normalize_tier(user.subscription_tier)
        expired = user.subscription_expires is not None and user.subscription_expires < now
        inactive = user.subscription_status not in ("active", "canceled")

        if expired or (inactive and tier != "free"):
            if tier != "free" or user.subscription_status != "expired":
                logger.info(f"Subscription lapsed for user_id={user_id}, tier={tier}; downgrading to free")
                user.subscription_tier = "free"
                user.subscription_status = "expired"
                _expire_current_subscription(db, user_id)
                db.commit()
            return free_status()

        if tier == "free":
            return free_status()
        return _status_for(tier, user.subscription_expires)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Entitlement lookup failed for user_id={user_id}, using free tier: {e}")
        return free_status()


def _expire_current_subscription(db: Session, user_id: str) -> None:
    current = get_current_subscription(db, user_id)
    if current is not None and current.status in ("active", "canceled"):
        current.status = "expired"


def get_current_subscription(db: Session, user_id: str) -> Optional[Subscription]:
    """Newest subscription row for a user."""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id)
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def can_access_feature(db: Session, user_id: str, feature: str) -> AccessDecision:
    """
    Check a feature key against the user's tier.

    Unknown features are denied. Errors resolve to the free tier, never to a grant.
    """
    allowed_tiers = allowed_tiers_for(feature)
    if not allowed_tiers:
        return AccessDecision(allowed=False, reason="Unknown feature")

    status = get_status(db, user_id)
    if status.tier in allowed_tiers:
        return AccessDecision(allowed=True)
    return AccessDecision(
        allowed=False,
        reason=f"Feature requires {' or '.join(allowed_tiers)} subscription",
    )


def subscription_end_date(start: datetime, billing: str) -> datetime:
    """End of the paid period for a billing cycle."""
    if billing == "monthly":
        return _add_months(start, 1)
    if billing == "quarterly":
        return _add_months(start, 3)
    if billing == "annual":
        return _add_months(start, 12)
    raise ValidationFailed(f"Invalid billing period: {billing}")


def _add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp the day for short months (Jan 31 + 1 month -> Feb 28/29)
    for day in (start.day, 30, 29, 28):
        try:
            return start.replace(year=year, month=month, day=min(start.day, day))
        except ValueError:
            continue
    return start + timedelta(days=30 * months)


def create_subscription(
    db: Session,
    user_id: str,
    tier: str,
    billing: str = "monthly",
    payment_provider: Optional[str] = None,
    provider_id: Optional[str] = None,
    customer_id: Optional[str] = None,
    amount: Optional[float] = None,
    now: datetime = None,
) -> Subscription:
    """
    Start a paid subscription and point the user record at it.

    Raises:
        ValidationFailed: Unknown tier or billing period
        NotFound: No such user
    """
    if tier not in TIER_ORDER or tier == "free":
        raise ValidationFailed(f"Invalid subscription tier: {tier}")
    if billing not in BILLING_PERIODS:
        raise ValidationFailed(f"Invalid billing period: {billing}")

    user = db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    start = now or datetime.utcnow()
    end = subscription_end_date(start, billing)

    subscription = Subscription(
        user_id=user_id,
        tier=tier,
        status="active",
        billing=billing,
        amount=amount if amount is not None else get_tier_price(tier, billing),
        payment_provider=payment_provider,
        provider_id=provider_id,
        customer_id=customer_id,
        start_date=start,
        end_date=end,
        created_at=start,
    )
    db.add(subscription)

    user.subscription_tier = tier
    user.subscription_status = "active"
    user.subscription_expires = end
    db.commit()
    db.refresh(subscription)

    logger.info(f"Created subscription: user_id={user_id}, tier={tier}, billing={billing}, ends={end.isoformat()}")
    return subscription


def cancel_subscription(db: Session, user_id: str, reason: str = "user_requested", now: datetime = None) -> Subscription:
    """
    Cancel the current subscription. Access continues until its end date.

    Raises:
        NotFound: No active subscription
    """
    subscription = get_current_subscription(db, user_id)
    if subscription is None or subscription.status != "active":
        raise NotFound("No active subscription found")

    subscription.status = "canceled"
    subscription.canceled_at = now or datetime.utcnow()
    subscription.cancel_reason = reason

    user = db.get(User, user_id)
    if user is not None:
        user.subscription_status = "canceled"
    db.commit()

    logger.info(f"Canceled subscription id={subscription.id} for user_id={user_id}, reason={reason}")
    return subscription


def reactivate_subscription(db: Session, user_id: str, now: datetime = None) -> Subscription:
    """
    Undo a cancellation while the paid period is still running.

    Raises:
        NotFound: Nothing to reactivate
        ValidationFailed: The period already ended
    """
    now = now or datetime.utcnow()
    subscription = get_current_subscription(db, user_id)
    if subscription is None or subscription.status != "canceled":
        raise NotFound("No canceled subscription to reactivate")
    if subscription.end_date is not None and subscription.end_date < now:
        raise ValidationFailed("Subscription period has ended; start a new subscription instead")

    subscription.status = "active"
    subscription.canceled_at = None
    subscription.cancel_reason = None

    user = db.get(User, user_id)
    if user is not None:
        user.subscription_status = "active"
        user.subscription_tier = subscription.tier
    db.commit()

    logger.info(f"Reactivated subscription id={subscription.id} for user_id={user_id}")
    return subscription


def upgrade_subscription(db: Session, user_id: str, new_tier: str) -> Subscription:
    """
    Move the current active subscription to another tier.

    Raises:
        ValidationFailed: Unknown tier
        NotFound: No active subscription
    """
    if new_tier not in TIER_ORDER or new_tier == "free":
        raise ValidationFailed(f"Invalid subscription tier: {new_tier}")

    subscription = get_current_subscription(db, user_id)
    if subscription is None or subscription.status != "active":
        raise NotFound("No active subscription found")

    old_tier = subscription.tier
    subscription.tier = new_tier
    subscription.amount = get_tier_price(new_tier, subscription.billing)

    user = db.get(User, user_id)
    if user is not None:
        user.subscription_tier = new_tier
    db.commit()

    logger.info(f"Changed subscription tier for user_id={user_id}: {old_tier} -> {new_tier}")
    return subscription
