from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from career_advisor.db.base import Base


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    file_name = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    extracted_skills = Column(JSON, default=list)
    experience = Column(JSON, default=dict)  # years, level, summary
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
