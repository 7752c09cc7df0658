from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from career_advisor.db.base import Base


class Achievement(Base):
    """A persisted (unlocked) achievement. Rows only ever move up to 100."""
    __tablename__ = "user_achievements"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    rarity = Column(String, nullable=False)  # common | rare | epic | legendary
    progress = Column(Integer, default=0, nullable=False)
    max_progress = Column(Integer, default=100, nullable=False)
    unlocked_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )
