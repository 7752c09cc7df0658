"""
Script to put a user on a subscription tier without going through checkout.
Run: python -m scripts.set_user_tier user@example.com premium --billing quarterly
"""
import argparse
import logging
import sys

from career_advisor.core.tiers import BILLING_PERIODS, TIER_ORDER
from career_advisor.db.init_db import init_db
from career_advisor.db.session import SessionLocal
from career_advisor.db.models.user import User
from career_advisor.services.entitlement_service import create_subscription

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def set_user_tier(email: str, tier: str, billing: str = "monthly") -> bool:
    """Start a manual subscription for an existing user, or drop them to free."""
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()
        if not user:
            logger.error(f"User {email} not found")
            return False

        if tier == "free":
            user.subscription_tier = "free"
            user.subscription_status = "active"
            user.subscription_expires = None
            db.commit()
        else:
            create_subscription(db, user.id, tier, billing, payment_provider="manual")

        logger.info(f"Set user {email} (ID: {user.id}) to {tier}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user: {e}", exc_info=True)
        return False
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Set a user's subscription tier")
    parser.add_argument("email")
    parser.add_argument("tier", choices=TIER_ORDER)
    parser.add_argument("--billing", choices=BILLING_PERIODS, default="monthly")
    args = parser.parse_args(argv)

    init_db()
    if not set_user_tier(args.email, args.tier, args.billing):
        print(f"\n[ERROR] Failed to update user {args.email}")
        return 1
    print(f"\n[SUCCESS] User {args.email} is now on the {args.tier} tier")
    return 0


if __name__ == "__main__":
    sys.exit(main())
