from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from career_advisor.db.base import Base


class QuizResult(Base):
    """One submitted career quiz. Append-only."""
    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    quiz_type = Column(String, default="career_assessment", nullable=False)
    career_path = Column(String, nullable=False)
    score = Column(Float, nullable=False)
    interests = Column(JSON, default=list)
    skills = Column(JSON, default=list)
    answers = Column(JSON, default=list)
    ai_analysis = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
