from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from career_advisor.db.base import Base


class SavedCollege(Base):
    __tablename__ = "saved_colleges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    college_id = Column(String, nullable=False)
    college_name = Column(String, nullable=False)
    college_location = Column(String, nullable=False)
    college_type = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # One row per user per college
    __table_args__ = (
        UniqueConstraint("user_id", "college_id", name="uq_user_college"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "college_id": self.college_id,
            "college_name": self.college_name,
            "college_location": self.college_location,
            "college_type": self.college_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
