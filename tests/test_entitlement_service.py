"""
Unit tests for entitlement resolution and the subscription lifecycle.
"""
import pytest
from datetime import datetime, timedelta

from career_advisor.core.errors import NotFound, ValidationFailed
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.models.user import User
from career_advisor.services import entitlement_service


def test_unknown_user_resolves_to_free(db):
    status = entitlement_service.get_status(db, "no-such-user")
    assert status.tier == "free"
    assert status.is_active is True
    assert status.limits["chat_messages"] == 10


def test_paid_user_keeps_tier_until_expiry(db, make_user):
    user = make_user(tier="premium")
    status = entitlement_service.get_status(db, user.id)
    assert status.tier == "premium"
    assert status.limits["roadmaps_created"] == -1


def test_expired_subscription_is_written_back_as_free(db, make_user):
    user = make_user(tier="basic", expires=datetime.utcnow() - timedelta(days=1))

    status = entitlement_service.get_status(db, user.id)

    assert status.tier == "free"
    db.refresh(user)
    assert user.subscription_tier == "free"
    assert user.subscription_status == "expired"


def test_canceled_subscription_keeps_access_until_period_end(db, make_user):
    user = make_user(tier="elite")
    user.subscription_status = "canceled"
    db.commit()

    assert entitlement_service.get_status(db, user.id).tier == "elite"


def test_feature_access_by_tier(db, make_user):
    free_user = make_user(email="free@example.com")
    premium_user = make_user(email="premium@example.com", tier="premium")

    denied = entitlement_service.can_access_feature(db, free_user.id, "roadmap-generator")
    assert denied.allowed is False
    assert "premium" in denied.reason

    assert entitlement_service.can_access_feature(db, premium_user.id, "roadmap-generator").allowed
    assert entitlement_service.can_access_feature(db, free_user.id, "chatbot-basic").allowed


def test_unknown_feature_is_denied(db, make_user):
    user = make_user(tier="elite")
    decision = entitlement_service.can_access_feature(db, user.id, "time-travel")
    assert decision.allowed is False


def test_create_subscription_sets_user_tier(db, test_user):
    start = datetime(2024, 1, 31)
    sub = entitlement_service.create_subscription(db, test_user.id, "basic", "monthly", now=start)

    assert sub.status == "active"
    assert sub.amount == 9.99
    assert sub.end_date == datetime(2024, 2, 29)
    db.refresh(test_user)
    assert test_user.subscription_tier == "basic"
    assert test_user.subscription_expires == sub.end_date


def test_create_subscription_rejects_free_and_unknown_billing(db, test_user):
    with pytest.raises(ValidationFailed):
        entitlement_service.create_subscription(db, test_user.id, "free")
    with pytest.raises(ValidationFailed):
        entitlement_service.create_subscription(db, test_user.id, "basic", "weekly")


def test_create_subscription_for_missing_user(db):
    with pytest.raises(NotFound):
        entitlement_service.create_subscription(db, "ghost", "basic")


def test_cancel_then_reactivate(db, test_user):
    entitlement_service.create_subscription(db, test_user.id, "premium", "quarterly")

    canceled = entitlement_service.cancel_subscription(db, test_user.id, "too expensive")
    assert canceled.status == "canceled"
    assert canceled.cancel_reason == "too expensive"

    reactivated = entitlement_service.reactivate_subscription(db, test_user.id)
    assert reactivated.status == "active"
    assert reactivated.canceled_at is None
    db.refresh(test_user)
    assert test_user.subscription_status == "active"


def test_cancel_without_subscription(db, test_user):
    with pytest.raises(NotFound):
        entitlement_service.cancel_subscription(db, test_user.id)


def test_reactivate_after_period_end_is_rejected(db, test_user):
    start = datetime.utcnow() - timedelta(days=60)
    entitlement_service.create_subscription(db, test_user.id, "basic", "monthly", now=start)
    entitlement_service.cancel_subscription(db, test_user.id)

    with pytest.raises(ValidationFailed):
        entitlement_service.reactivate_subscription(db, test_user.id)


def test_upgrade_changes_tier_and_price(db, test_user):
    entitlement_service.create_subscription(db, test_user.id, "basic", "monthly")

    sub = entitlement_service.upgrade_subscription(db, test_user.id, "elite")

    assert sub.tier == "elite"
    assert sub.amount == 39.99
    assert db.get(User, test_user.id).subscription_tier == "elite"
    assert db.query(Subscription).count() == 1
