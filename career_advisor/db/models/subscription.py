from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index
from career_advisor.db.base import Base


class Subscription(Base):
    """
    One billing subscription for a user.

    Rows are kept after cancellation or expiry; the newest row is the current one.
    """
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)

    tier = Column(String, default="free", nullable=False)  # free | basic | premium | elite
    status = Column(String, default="pending", nullable=False)  # active | canceled | expired | pending
    billing = Column(String, default="monthly", nullable=False)  # monthly | quarterly | annual
    amount = Column(Float, default=0.0)
    currency = Column(String(3), default="USD")

    payment_provider = Column(String, nullable=True)  # stripe | razorpay
    provider_id = Column(String, nullable=True, unique=True)
    customer_id = Column(String, nullable=True)

    start_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    end_date = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)
    cancel_reason = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_subscription_user_created", "user_id", "created_at"),
    )
