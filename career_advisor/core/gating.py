"""
Feature gating by subscription tier.

require_feature() builds a route dependency that resolves the session and
rejects users whose tier does not include the feature.
"""
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_session_user_id
from career_advisor.core.errors import AuthenticationRequired, TierRequired
from career_advisor.db.session import get_db
from career_advisor.services.entitlement_service import can_access_feature, get_status

logger = logging.getLogger(__name__)

UPGRADE_URL = "/pricing"


def require_feature(feature: str):
    """
    Dependency that enforces tier access to a feature.

    Raises:
        AuthenticationRequired 401: No session (code AUTH_REQUIRED)
        TierRequired 403: Tier does not include the feature (code TIER_REQUIRED)
    """
    def feature_checker(
        user_id: Optional[str] = Depends(get_session_user_id),
        db: Session = Depends(get_db),
    ) -> str:
        if not user_id:
            raise AuthenticationRequired(code="AUTH_REQUIRED")

        decision = can_access_feature(db, user_id, feature)
        if not decision.allowed:
            tier = get_status(db, user_id).tier
            logger.warning(f"Feature access denied: user_id={user_id}, tier={tier}, feature={feature}")
            raise TierRequired(
                decision.reason or "Upgrade required",
                current_tier=tier,
                upgrade_url=UPGRADE_URL,
            )
        return user_id

    return feature_checker
