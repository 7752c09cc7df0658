"""
Usage tracking against tier limits.

Counts metered actions per user, per metric, per day. Counters live in
usage_metrics and reset implicitly when the date key changes.
"""
import logging
from datetime import date, datetime
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.tiers import (
    ACTION_METRICS,
    AI_CALLS,
    CHAT_MESSAGES,
    ROADMAPS_CREATED,
    get_tier_limit,
    is_unlimited,
)
from career_advisor.db.models.usage import UsageMetric
from career_advisor.services.entitlement_service import AccessDecision, get_status

logger = logging.getLogger(__name__)

DAILY = "daily"

TRACKED_METRICS = [CHAT_MESSAGES, ROADMAPS_CREATED, AI_CALLS]


def track(db: Session, user_id: str, metric: str, delta: int = 1, on_date: Optional[date] = None) -> int:
    """
    Add delta to today's counter for a metric.

    The counter row is incremented in a single UPDATE; if no row exists yet it
    is inserted, and a concurrent insert of the same key is resolved by
    retrying the UPDATE.

    Returns:
        The counter value after the increment
    """
    day = on_date or UsageMetric.today()
    key = (
        UsageMetric.user_id == user_id,
        UsageMetric.metric == metric,
        UsageMetric.period == DAILY,
        UsageMetric.date == day,
    )

    result = db.execute(
        update(UsageMetric).where(*key).values(count=UsageMetric.count + delta)
    )
    if result.rowcount == 0:
        try:
            db.add(UsageMetric(user_id=user_id, metric=metric, period=DAILY, date=day, count=delta))
            db.commit()
        except IntegrityError:
            db.rollback()
            db.execute(update(UsageMetric).where(*key).values(count=UsageMetric.count + delta))
            db.commit()
    else:
        db.commit()

    count = db.query(UsageMetric.count).filter(*key).scalar() or 0
    logger.info(f"Tracked usage: user_id={user_id}, metric={metric}, delta={delta}, count={count}")
    return count


def get_daily_counts(db: Session, user_id: str, on_date: Optional[date] = None) -> Dict[str, int]:
    """Today's counters keyed by metric name."""
    day = on_date or UsageMetric.today()
    rows = db.query(UsageMetric.metric, UsageMetric.count).filter(
        UsageMetric.user_id == user_id,
        UsageMetric.period == DAILY,
        UsageMetric.date == day,
    ).all()
    return {metric: int(count) for metric, count in rows}


def _stats_for(tier: str, counts: Dict[str, int]) -> Dict[str, Dict]:
    stats = {}
    for metric in TRACKED_METRICS:
        limit = get_tier_limit(tier, metric)
        stats[metric] = {
            "used": counts.get(metric, 0),
            "limit": limit,
            "unlimited": is_unlimited(limit),
        }
    return stats


def get_stats(db: Session, user_id: str, on_date: Optional[date] = None) -> Dict[str, Dict]:
    """
    Today's usage combined with the user's tier limits.

    Returns:
        {metric: {used, limit, unlimited}}; limit -1 means unlimited.
        On store failure, zero usage against the free tier's limits.
    """
    try:
        status = get_status(db, user_id)
        counts = get_daily_counts(db, user_id, on_date)
        return _stats_for(status.tier, counts)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage stats lookup failed for user_id={user_id}: {e}")
        return _stats_for("free", {})


def check_limit(db: Session, user_id: str, action: str, on_date: Optional[date] = None) -> AccessDecision:
    """
    Whether a metered action is still within today's allowance.

    Unmetered actions are always allowed. Store errors deny the action.
    """
    metric = ACTION_METRICS.get(action)
    if metric is None:
        return AccessDecision(allowed=True)

    try:
        status = get_status(db, user_id)
        limit = get_tier_limit(status.tier, metric)
        if is_unlimited(limit):
            return AccessDecision(allowed=True)

        used = get_daily_counts(db, user_id, on_date).get(metric, 0)
        if used < limit:
            return AccessDecision(allowed=True)

        if metric == CHAT_MESSAGES:
            reason = f"Daily chat limit reached ({limit} messages). Upgrade to Premium for unlimited chat."
        else:
            reason = "Roadmap creation limit reached. Upgrade to Premium for unlimited roadmaps."
        logger.warning(f"Usage limit reached: user_id={user_id}, action={action}, used={used}, limit={limit}")
        return AccessDecision(allowed=False, reason=reason)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Usage limit check failed for user_id={user_id}, action={action}: {e}")
        return AccessDecision(allowed=False, reason="Error checking limits")


def get_usage_for_response(db: Session, user_id: str) -> Dict:
    """Usage payload for GET /api/usage and the subscription page."""
    status = get_status(db, user_id)
    return {
        "tier": status.tier,
        "date": datetime.utcnow().date().isoformat(),
        "usage": get_stats(db, user_id),
    }
