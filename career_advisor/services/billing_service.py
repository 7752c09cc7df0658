"""
Billing service for Stripe and Razorpay.

Handles checkout sessions and webhook event processing. Webhooks keep the
subscriptions table and the user's denormalized tier in sync with the
payment provider.
"""
import hashlib
import hmac
import json
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import stripe
from sqlalchemy.orm import Session

from career_advisor.core import config
from career_advisor.core.errors import UpstreamError, ValidationFailed
from career_advisor.core.tiers import get_tier_price
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.models.user import User
from career_advisor.services.entitlement_service import subscription_end_date

logger = logging.getLogger(__name__)

PAID_TIERS = ("basic", "premium", "elite")

# Stripe subscription status -> stored status
STRIPE_STATUS_MAP = {
    "active": "active",
    "trialing": "active",
    "canceled": "canceled",
    "incomplete": "pending",
    "incomplete_expired": "expired",
    "past_due": "payment_failed",
    "unpaid": "payment_failed",
}


def get_price_id(tier: str, billing: str) -> str:
    """Stripe price id for a tier and billing period."""
    return f"price_{tier}_{billing}"


def get_tier_from_price_id(price_id: Optional[str]) -> str:
    """Tier named inside a provider price or plan id, free if none."""
    if not price_id:
        return "free"
    for tier in PAID_TIERS:
        if tier in price_id:
            return tier
    return "free"


def _timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    return datetime.utcfromtimestamp(int(value))


def _configure_stripe() -> None:
    if not config.STRIPE_SECRET_KEY:
        logger.error("STRIPE_SECRET_KEY not configured - cannot create checkout session")
        raise UpstreamError("Payment provider not configured")
    stripe.api_key = config.STRIPE_SECRET_KEY


# ============================================
# Checkout
# ============================================

def create_checkout_session(db: Session, user: User, tier: str, billing: str, provider: str = "stripe") -> Dict[str, Any]:
    """
    Start a hosted checkout for a paid tier.

    Returns:
        {provider, sessionId, url}

    Raises:
        UpstreamError 503: Provider unavailable, unconfigured or failing
    """
    if provider == "razorpay":
        logger.warning(f"Razorpay checkout requested by user_id={user.id}; provider disabled")
        raise UpstreamError("Razorpay payments are temporarily unavailable")

    _configure_stripe()
    price_id = get_price_id(tier, billing)
    success_url = f"{config.FRONTEND_URL}/dashboard?payment=success&tier={tier}"
    cancel_url = f"{config.FRONTEND_URL}/pricing?payment=cancelled"
    metadata = {"user_id": str(user.id), "tier": tier, "billing": billing}

    try:
        if not user.stripe_customer_id:
            customer = stripe.Customer.create(
                email=user.email,
                name=user.full_name or None,
                metadata={"user_id": str(user.id)},
            )
            user.stripe_customer_id = customer.id
            db.commit()

        session = stripe.checkout.Session.create(
            customer=user.stripe_customer_id,
            payment_method_types=["card"],
            mode="subscription",
            line_items=[{"price": price_id, "quantity": 1}],
            success_url=success_url,
            cancel_url=cancel_url,
            metadata=metadata,
            subscription_data={"metadata": metadata},
        )
    except stripe.StripeError as e:
        logger.error(f"Stripe error creating checkout session for user_id={user.id}: {e}")
        raise UpstreamError("Failed to create checkout session", original_error=e)

    logger.info(f"Created checkout session: session_id={session.id}, user_id={user.id}, tier={tier}, billing={billing}")
    return {"provider": "stripe", "sessionId": session.id, "url": session.url}


# ============================================
# Shared subscription sync
# ============================================

def _find_user(db: Session, user_id: Optional[str] = None, customer_id: Optional[str] = None) -> Optional[User]:
    if user_id:
        user = db.get(User, str(user_id))
        if user is not None:
            return user
    if customer_id:
        return db.query(User).filter(User.stripe_customer_id == customer_id).first()
    return None


def _sync_subscription(
    db: Session,
    user: User,
    provider: str,
    provider_id: str,
    tier: str,
    status: str,
    billing: str,
    amount: Optional[float],
    currency: str,
    start: Optional[datetime],
    end: Optional[datetime],
    customer_id: Optional[str] = None,
) -> Subscription:
    """Upsert the provider's subscription row and mirror it onto the user."""
    subscription = db.query(Subscription).filter(Subscription.provider_id == provider_id).first()
    if subscription is None:
        subscription = Subscription(
            user_id=user.id,
            tier=tier,
            billing=billing,
            amount=amount if amount is not None else get_tier_price(tier, billing),
            currency=currency,
            payment_provider=provider,
            provider_id=provider_id,
            customer_id=customer_id,
            start_date=start or datetime.utcnow(),
        )
        db.add(subscription)
    subscription.status = status
    subscription.tier = tier
    subscription.end_date = end

    user.subscription_tier = tier if status == "active" else user.subscription_tier
    user.subscription_status = status
    user.subscription_expires = end
    db.commit()
    db.refresh(subscription)

    logger.info(f"Subscription synced: user_id={user.id}, provider={provider}, tier={tier}, status={status}")
    return subscription


def _cancel_provider_subscription(db: Session, provider_id: str, reason: str, user: Optional[User]) -> None:
    now = datetime.utcnow()
    subscription = db.query(Subscription).filter(Subscription.provider_id == provider_id).first()
    if subscription is not None:
        subscription.status = "canceled"
        subscription.canceled_at = now
        subscription.cancel_reason = reason
        if user is None:
            user = db.get(User, subscription.user_id)
    if user is not None:
        user.subscription_tier = "free"
        user.subscription_status = "canceled"
        user.subscription_expires = now
    db.commit()
    logger.info(f"Subscription canceled by provider: provider_id={provider_id}, reason={reason}")


def _mark_payment_failed(db: Session, user: Optional[User], provider_id: Optional[str]) -> None:
    if user is None and provider_id:
        subscription = db.query(Subscription).filter(Subscription.provider_id == provider_id).first()
        if subscription is not None:
            user = db.get(User, subscription.user_id)
    if user is None:
        logger.warning(f"Payment failed for unknown subscription provider_id={provider_id}")
        return
    user.subscription_status = "payment_failed"
    db.commit()
    logger.warning(f"Payment failed: user_id={user.id}, provider_id={provider_id}")


# ============================================
# Stripe webhooks
# ============================================

def verify_stripe_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Verify the Stripe-Signature header and parse the event.

    Raises:
        ValidationFailed: Missing or invalid signature, or malformed payload
        ConfigurationError: STRIPE_WEBHOOK_SECRET not set
    """
    if not signature:
        raise ValidationFailed("Missing signature")
    config.validate_config(["STRIPE_WEBHOOK_SECRET"])

    body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
    try:
        stripe.WebhookSignature.verify_header(body, signature, config.STRIPE_WEBHOOK_SECRET)
        event = json.loads(body)
    except stripe.SignatureVerificationError as e:
        logger.error(f"Webhook signature verification failed: {e}")
        raise ValidationFailed("Invalid signature")
    except ValueError as e:
        logger.error(f"Invalid webhook payload: {e}")
        raise ValidationFailed("Invalid payload")

    logger.info(f"Verified webhook event: {event.get('type')}, id={event.get('id')}")
    return event


def _stripe_price(obj: Dict[str, Any]) -> Dict[str, Any]:
    items = (obj.get("items") or {}).get("data") or [{}]
    return items[0].get("price") or {}


def _stripe_billing(price: Dict[str, Any]) -> str:
    recurring = price.get("recurring") or {}
    if recurring.get("interval") == "year":
        return "annual"
    if recurring.get("interval") == "month" and recurring.get("interval_count", 1) == 1:
        return "monthly"
    return "quarterly"


def handle_subscription_change(db: Session, obj: Dict[str, Any]) -> Optional[Subscription]:
    """customer.subscription.created / updated."""
    metadata = obj.get("metadata") or {}
    user = _find_user(db, metadata.get("user_id"), obj.get("customer"))
    if user is None:
        logger.warning(f"Subscription change for unknown customer={obj.get('customer')}")
        return None

    price = _stripe_price(obj)
    unit_amount = price.get("unit_amount")
    return _sync_subscription(
        db, user,
        provider="stripe",
        provider_id=obj.get("id"),
        tier=get_tier_from_price_id(price.get("id")),
        status=STRIPE_STATUS_MAP.get(obj.get("status"), "pending"),
        billing=_stripe_billing(price),
        amount=unit_amount / 100 if unit_amount is not None else None,
        currency=(obj.get("currency") or "usd").upper(),
        start=_timestamp(obj.get("current_period_start")),
        end=_timestamp(obj.get("current_period_end")),
        customer_id=obj.get("customer"),
    )


def handle_subscription_deleted(db: Session, obj: Dict[str, Any]) -> None:
    """customer.subscription.deleted: downgrade to free."""
    user = _find_user(db, (obj.get("metadata") or {}).get("user_id"), obj.get("customer"))
    _cancel_provider_subscription(db, obj.get("id"), "stripe_cancellation", user)


def handle_checkout_completed(db: Session, obj: Dict[str, Any]) -> Optional[Subscription]:
    """checkout.session.completed: activate the tier chosen at checkout."""
    metadata = obj.get("metadata") or {}
    user = _find_user(db, metadata.get("user_id"), obj.get("customer"))
    if user is None:
        logger.warning(f"Checkout completed for unknown customer={obj.get('customer')}")
        return None

    tier = metadata.get("tier") or "free"
    billing = metadata.get("billing") or "monthly"
    if tier not in PAID_TIERS:
        logger.warning(f"Checkout completed without a paid tier: user_id={user.id}, tier={tier}")
        return None

    start = datetime.utcnow()
    if obj.get("customer") and not user.stripe_customer_id:
        user.stripe_customer_id = obj.get("customer")
    return _sync_subscription(
        db, user,
        provider="stripe",
        provider_id=obj.get("subscription") or obj.get("id"),
        tier=tier,
        status="active",
        billing=billing,
        amount=None,
        currency="USD",
        start=start,
        end=subscription_end_date(start, billing),
        customer_id=obj.get("customer"),
    )


def handle_invoice_payment_succeeded(db: Session, obj: Dict[str, Any]) -> None:
    subscription_id = obj.get("subscription")
    if not subscription_id:
        logger.warning("invoice.payment_succeeded: No subscription ID in invoice")
        return
    subscription = db.query(Subscription).filter(Subscription.provider_id == subscription_id).first()
    if subscription is None:
        logger.warning(f"invoice.payment_succeeded: Subscription not found for subscription_id={subscription_id}")
        return
    subscription.status = "active"
    user = db.get(User, subscription.user_id)
    if user is not None:
        user.subscription_status = "active"
    db.commit()
    logger.info(f"Invoice payment succeeded: user_id={subscription.user_id}, subscription_id={subscription_id}")


def handle_invoice_payment_failed(db: Session, obj: Dict[str, Any]) -> None:
    subscription_id = obj.get("subscription")
    if not subscription_id:
        logger.warning("invoice.payment_failed: No subscription ID in invoice")
        return
    _mark_payment_failed(db, None, subscription_id)


STRIPE_HANDLERS = {
    "customer.subscription.created": handle_subscription_change,
    "customer.subscription.updated": handle_subscription_change,
    "customer.subscription.deleted": handle_subscription_deleted,
    "invoice.payment_succeeded": handle_invoice_payment_succeeded,
    "invoice.payment_failed": handle_invoice_payment_failed,
    "checkout.session.completed": handle_checkout_completed,
}


def handle_stripe_event(db: Session, event: Dict[str, Any]) -> bool:
    """Dispatch a verified Stripe event. Returns False for ignored event types."""
    event_type = event.get("type")
    handler = STRIPE_HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"Unhandled webhook event type: {event_type}")
        return False
    handler(db, (event.get("data") or {}).get("object") or {})
    return True


# ============================================
# Razorpay webhooks
# ============================================

def verify_razorpay_signature(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """
    Check x-razorpay-signature (hex HMAC-SHA256 of the raw body) and parse the event.

    Raises:
        ValidationFailed: Missing or invalid signature, or malformed payload
        ConfigurationError: RAZORPAY_WEBHOOK_SECRET not set
    """
    if not signature:
        raise ValidationFailed("Missing signature")
    config.validate_config(["RAZORPAY_WEBHOOK_SECRET"])

    expected = hmac.new(
        config.RAZORPAY_WEBHOOK_SECRET.encode("utf-8"),
        payload,
        hashlib.sha256,
    ).hexdigest()
    if not hmac.compare_digest(expected, signature):
        logger.error("Razorpay webhook signature verification failed")
        raise ValidationFailed("Invalid signature")

    try:
        event = json.loads(payload)
    except ValueError as e:
        raise ValidationFailed("Invalid payload", original_error=e)
    if not isinstance(event, dict):
        raise ValidationFailed("Invalid payload")
    return event


def _entity(event: Dict[str, Any], name: str) -> Dict[str, Any]:
    return ((event.get("payload") or {}).get(name) or {}).get("entity") or {}


def handle_razorpay_event(db: Session, event: Dict[str, Any]) -> bool:
    """Dispatch a verified Razorpay event. Returns False for ignored event types."""
    event_type = event.get("event")

    if event_type in ("subscription.activated", "subscription.charged"):
        entity = _entity(event, "subscription")
        user = _find_user(db, (entity.get("notes") or {}).get("user_id"))
        if user is None:
            logger.warning(f"Razorpay subscription for unknown user: id={entity.get('id')}")
            return True
        plan_id = entity.get("plan_id") or ""
        tier = get_tier_from_price_id(plan_id)
        billing = "quarterly" if "quarterly" in plan_id else "monthly"
        _sync_subscription(
            db, user,
            provider="razorpay",
            provider_id=entity.get("id"),
            tier=tier,
            status="active",
            billing=billing,
            amount=None,
            currency="INR",
            start=_timestamp(entity.get("start_at") or entity.get("current_start")),
            end=_timestamp(entity.get("end_at") or entity.get("current_end")),
            customer_id=entity.get("customer_id"),
        )
        return True

    if event_type == "subscription.cancelled":
        entity = _entity(event, "subscription")
        user = _find_user(db, (entity.get("notes") or {}).get("user_id"))
        _cancel_provider_subscription(db, entity.get("id"), "razorpay_cancellation", user)
        return True

    if event_type == "payment.captured":
        entity = _entity(event, "payment")
        logger.info(f"Razorpay payment captured: id={entity.get('id')}, amount={entity.get('amount')}")
        return True

    if event_type == "payment.failed":
        entity = _entity(event, "payment")
        user = _find_user(db, (entity.get("notes") or {}).get("user_id"))
        _mark_payment_failed(db, user, entity.get("subscription_id"))
        return True

    logger.info(f"Unhandled Razorpay event type: {event_type}")
    return False
