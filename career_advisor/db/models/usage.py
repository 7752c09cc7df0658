from datetime import date as date_type, datetime
from sqlalchemy import Column, Integer, String, Date, ForeignKey, UniqueConstraint
from career_advisor.db.base import Base


class UsageMetric(Base):
    """
    Per-user, per-metric, per-day usage counter.

    One row per (user, metric, period, date); counters reset by the date key
    changing, nothing deletes old rows.
    """
    __tablename__ = "usage_metrics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    metric = Column(String, nullable=False)  # chat_messages | roadmaps_created | ai_calls
    period = Column(String, default="daily", nullable=False)
    date = Column(Date, nullable=False, index=True)
    count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "metric", "period", "date", name="uq_usage_user_metric_period_date"),
    )

    @staticmethod
    def today(now: datetime = None) -> date_type:
        """Server-time date key for today's counters."""
        return (now or datetime.utcnow()).date()
