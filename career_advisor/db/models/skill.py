from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from career_advisor.db.base import Base


class Skill(Base):
    """A tracked skill with current and target proficiency (both 0-100)."""
    __tablename__ = "user_skills"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    skill_name = Column(String, nullable=False)
    current_level = Column(Integer, default=0, nullable=False)
    target_level = Column(Integer, default=100, nullable=False)
    category = Column(String, default="General", nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "skill_name", name="uq_user_skill_name"),
        CheckConstraint("current_level >= 0 AND current_level <= 100", name="ck_skill_current_level"),
        CheckConstraint("target_level >= 0 AND target_level <= 100", name="ck_skill_target_level"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "skill_name": self.skill_name,
            "current_level": self.current_level,
            "target_level": self.target_level,
            "category": self.category,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
