"""
JobMatch model for resume-to-job comparisons.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, Index, JSON
from career_advisor.db.base import Base


class JobMatch(Base):
    """
    Stores a match score between a user's resume and a job description,
    with the matching and missing skills behind it.
    """
    __tablename__ = "job_matches"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    job_title = Column(String, nullable=True)
    company = Column(String, nullable=True)
    job_description = Column(Text, nullable=False)

    match_score = Column(Float, nullable=False)  # 0-100
    matching_skills = Column(JSON, default=list)
    missing_skills = Column(JSON, default=list)
    recommendations = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("idx_job_match_user_score", "user_id", "match_score"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "job_title": self.job_title,
            "company": self.company,
            "match_score": self.match_score,
            "matching_skills": self.matching_skills or [],
            "missing_skills": self.missing_skills or [],
            "recommendations": self.recommendations or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<JobMatch(id={self.id}, user_id={self.user_id}, score={self.match_score})>"
