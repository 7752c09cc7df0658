"""
Checkout and payment webhook tests. Stripe API calls are monkeypatched;
webhook signatures are computed the same way the providers compute them.
"""
import hashlib
import hmac
import json
import time
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
import stripe

from career_advisor.core import config
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.models.user import User
from career_advisor.services import billing_service

STRIPE_SECRET = "whsec_test_secret"
RAZORPAY_SECRET = "rzp_test_secret"


def stripe_signature(payload: str, secret: str = STRIPE_SECRET) -> str:
    timestamp = int(time.time())
    signed = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signed}"


def razorpay_signature(payload: bytes, secret: str = RAZORPAY_SECRET) -> str:
    return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


@pytest.fixture
def webhook_secrets(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", STRIPE_SECRET)
    monkeypatch.setattr(config, "RAZORPAY_WEBHOOK_SECRET", RAZORPAY_SECRET)


@pytest.fixture
def stripe_api(monkeypatch):
    """Record Stripe API calls instead of making them."""
    calls = {}

    def create_customer(**kwargs):
        calls["customer"] = kwargs
        return SimpleNamespace(id="cus_test123")

    def create_session(**kwargs):
        calls["session"] = kwargs
        return SimpleNamespace(id="cs_test_abc", url="https://checkout.stripe.com/pay/cs_test_abc")

    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", "sk_test_key")
    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)
    return calls


def post_stripe(client, event: dict, signature=None):
    payload = json.dumps(event)
    headers = {"Content-Type": "application/json"}
    if signature is not False:
        headers["Stripe-Signature"] = signature or stripe_signature(payload)
    return client.post("/api/webhooks/stripe", content=payload, headers=headers)


def post_razorpay(client, event: dict, signature=None):
    payload = json.dumps(event).encode()
    return client.post(
        "/api/webhooks/razorpay",
        content=payload,
        headers={
            "Content-Type": "application/json",
            "X-Razorpay-Signature": signature or razorpay_signature(payload),
        },
    )


def test_tier_from_price_id():
    assert billing_service.get_tier_from_price_id("price_premium_monthly") == "premium"
    assert billing_service.get_tier_from_price_id("plan_elite_quarterly") == "elite"
    assert billing_service.get_tier_from_price_id("price_unknown") == "free"
    assert billing_service.get_tier_from_price_id(None) == "free"


# ============================================
# Checkout
# ============================================

def test_checkout_requires_session(client):
    response = client.post("/api/payments/create-checkout", json={"tier": "premium"})
    assert response.status_code == 401


def test_checkout_creates_customer_and_session(client, auth_headers, test_user, stripe_api, db):
    response = client.post(
        "/api/payments/create-checkout",
        headers=auth_headers,
        json={"tier": "premium", "billing": "quarterly"},
    )

    assert response.status_code == 200
    assert response.json() == {
        "provider": "stripe",
        "sessionId": "cs_test_abc",
        "url": "https://checkout.stripe.com/pay/cs_test_abc",
    }
    session = stripe_api["session"]
    assert session["customer"] == "cus_test123"
    assert session["line_items"] == [{"price": "price_premium_quarterly", "quantity": 1}]
    assert session["metadata"] == {"user_id": test_user.id, "tier": "premium", "billing": "quarterly"}
    assert session["success_url"].endswith("/dashboard?payment=success&tier=premium")

    db.expire_all()
    assert db.get(User, test_user.id).stripe_customer_id == "cus_test123"


def test_checkout_rejects_free_tier(client, auth_headers, stripe_api):
    response = client.post("/api/payments/create-checkout", headers=auth_headers, json={"tier": "free"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request data"


def test_razorpay_checkout_is_unavailable(client, auth_headers):
    response = client.post(
        "/api/payments/create-checkout",
        headers=auth_headers,
        json={"tier": "basic", "provider": "razorpay"},
    )
    assert response.status_code == 503
    assert response.json() == {"error": "Razorpay payments are temporarily unavailable"}


def test_checkout_without_stripe_key(client, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "STRIPE_SECRET_KEY", None)
    response = client.post("/api/payments/create-checkout", headers=auth_headers, json={"tier": "basic"})
    assert response.status_code == 503
    assert response.json() == {"error": "Payment provider not configured"}


def test_stripe_errors_become_503(client, auth_headers, stripe_api, monkeypatch):
    def declined(**kwargs):
        raise stripe.StripeError("No such price")

    monkeypatch.setattr(stripe.checkout.Session, "create", declined)
    response = client.post("/api/payments/create-checkout", headers=auth_headers, json={"tier": "elite"})

    assert response.status_code == 503
    assert response.json() == {"error": "Failed to create checkout session"}


# ============================================
# Stripe webhooks
# ============================================

def test_stripe_webhook_requires_signature(client, webhook_secrets):
    response = post_stripe(client, {"type": "invoice.payment_failed"}, signature=False)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing signature"}


def test_stripe_webhook_rejects_bad_signature(client, webhook_secrets):
    response = post_stripe(client, {"type": "invoice.payment_failed"}, signature="t=1,v1=deadbeef")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid signature"}


def test_stripe_webhook_without_secret_is_config_error(client, monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", None)
    response = post_stripe(client, {"type": "invoice.payment_failed"}, signature="t=1,v1=deadbeef")
    assert response.status_code == 500
    assert response.json()["error"] == "Server configuration error"


def test_subscription_updated_sets_tier(client, webhook_secrets, test_user, db):
    period_end = int(time.time()) + 30 * 86400
    event = {
        "id": "evt_1",
        "type": "customer.subscription.updated",
        "data": {"object": {
            "id": "sub_123",
            "customer": "cus_123",
            "status": "active",
            "currency": "usd",
            "metadata": {"user_id": test_user.id},
            "current_period_start": period_end - 30 * 86400,
            "current_period_end": period_end,
            "items": {"data": [{"price": {
                "id": "price_premium_monthly",
                "unit_amount": 1999,
                "recurring": {"interval": "month", "interval_count": 1},
            }}]},
        }},
    }

    response = post_stripe(client, event)

    assert response.status_code == 200
    assert response.json() == {"received": True}
    db.expire_all()
    user = db.get(User, test_user.id)
    assert user.subscription_tier == "premium"
    assert user.subscription_status == "active"
    subscription = db.query(Subscription).filter(Subscription.provider_id == "sub_123").one()
    assert subscription.amount == 19.99
    assert subscription.currency == "USD"
    assert subscription.billing == "monthly"


def test_checkout_completed_then_deleted(client, webhook_secrets, test_user, db):
    completed = {
        "type": "checkout.session.completed",
        "data": {"object": {
            "id": "cs_1",
            "subscription": "sub_456",
            "customer": "cus_456",
            "metadata": {"user_id": test_user.id, "tier": "elite", "billing": "annual"},
        }},
    }
    assert post_stripe(client, completed).status_code == 200

    db.expire_all()
    user = db.get(User, test_user.id)
    assert user.subscription_tier == "elite"
    assert user.stripe_customer_id == "cus_456"
    assert user.subscription_expires > datetime.utcnow() + timedelta(days=360)

    deleted = {
        "type": "customer.subscription.deleted",
        "data": {"object": {"id": "sub_456", "customer": "cus_456"}},
    }
    assert post_stripe(client, deleted).status_code == 200

    db.expire_all()
    user = db.get(User, test_user.id)
    assert user.subscription_tier == "free"
    assert user.subscription_status == "canceled"
    subscription = db.query(Subscription).filter(Subscription.provider_id == "sub_456").one()
    assert subscription.status == "canceled"
    assert subscription.cancel_reason == "stripe_cancellation"


def test_invoice_payment_failed_marks_user(client, webhook_secrets, make_user, db):
    user = make_user(email="payer@example.com", tier="basic")
    db.add(Subscription(user_id=user.id, tier="basic", status="active", provider_id="sub_789"))
    db.commit()

    event = {"type": "invoice.payment_failed", "data": {"object": {"subscription": "sub_789"}}}
    assert post_stripe(client, event).status_code == 200

    db.expire_all()
    assert db.get(User, user.id).subscription_status == "payment_failed"


def test_unhandled_stripe_event_is_acknowledged(client, webhook_secrets):
    response = post_stripe(client, {"type": "customer.created", "data": {"object": {}}})
    assert response.status_code == 200
    assert response.json() == {"received": True}


# ============================================
# Razorpay webhooks
# ============================================

def test_razorpay_rejects_bad_signature(client, webhook_secrets):
    response = post_razorpay(client, {"event": "payment.captured"}, signature="0" * 64)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid signature"}


def test_razorpay_subscription_lifecycle(client, webhook_secrets, test_user, db):
    start = int(time.time())
    entity = {
        "id": "sub_rzp_1",
        "plan_id": "plan_basic_quarterly",
        "customer_id": "cust_rzp",
        "start_at": start,
        "end_at": start + 90 * 86400,
        "notes": {"user_id": test_user.id},
    }

    activated = post_razorpay(client, {
        "event": "subscription.activated",
        "payload": {"subscription": {"entity": entity}},
    })
    assert activated.status_code == 200

    db.expire_all()
    subscription = db.query(Subscription).filter(Subscription.provider_id == "sub_rzp_1").one()
    assert subscription.tier == "basic"
    assert subscription.billing == "quarterly"
    assert subscription.currency == "INR"
    assert subscription.amount == 24.99
    assert db.get(User, test_user.id).subscription_tier == "basic"

    cancelled = post_razorpay(client, {
        "event": "subscription.cancelled",
        "payload": {"subscription": {"entity": entity}},
    })
    assert cancelled.status_code == 200

    db.expire_all()
    assert db.get(User, test_user.id).subscription_tier == "free"
    subscription = db.query(Subscription).filter(Subscription.provider_id == "sub_rzp_1").one()
    assert subscription.cancel_reason == "razorpay_cancellation"


def test_razorpay_payment_failed(client, webhook_secrets, test_user, db):
    response = post_razorpay(client, {
        "event": "payment.failed",
        "payload": {"payment": {"entity": {"id": "pay_1", "notes": {"user_id": test_user.id}}}},
    })

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, test_user.id).subscription_status == "payment_failed"
