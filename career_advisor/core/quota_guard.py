"""
Daily usage enforcement for metered actions.

require_usage() builds a route dependency that:
1. Authenticates the user
2. Checks today's usage against the tier limit
3. Records one unit of usage if allowed
4. Raises UsageLimitExceeded otherwise
"""
import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_session_user_id
from career_advisor.core.errors import AuthenticationRequired, UsageLimitExceeded
from career_advisor.core.tiers import ACTION_METRICS
from career_advisor.db.session import get_db
from career_advisor.services.entitlement_service import get_status
from career_advisor.services.usage_service import check_limit, track

logger = logging.getLogger(__name__)


def require_usage(action: str, amount: int = 1):
    """
    Dependency that enforces and consumes daily usage for an action.

    Args:
        action: Metered action name ("chat_message", "roadmap_creation")
        amount: Units to record once allowed

    Raises:
        AuthenticationRequired 401: No session
        UsageLimitExceeded 429: Daily limit reached (code USAGE_LIMIT_EXCEEDED)
    """
    def usage_checker(
        user_id: Optional[str] = Depends(get_session_user_id),
        db: Session = Depends(get_db),
    ) -> str:
        if not user_id:
            raise AuthenticationRequired(code="AUTH_REQUIRED")

        decision = check_limit(db, user_id, action)
        if not decision.allowed:
            tier = get_status(db, user_id).tier
            raise UsageLimitExceeded(decision.reason or "Usage limit exceeded", current_tier=tier)

        metric = ACTION_METRICS.get(action)
        if metric is not None:
            track(db, user_id, metric, amount)
        logger.debug(f"Usage check passed: user_id={user_id}, action={action}, amount={amount}")
        return user_id

    return usage_checker
