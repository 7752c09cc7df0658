from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON
from career_advisor.db.base import Base


class Roadmap(Base):
    __tablename__ = "career_roadmaps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    career_goal = Column(String, nullable=False)
    current_level = Column(String, nullable=True)
    duration_months = Column(Integer, nullable=True)
    roadmap_data = Column(JSON, default=dict)  # phases, nodes, connections
    ai_generated = Column(Boolean, default=True)
    progress = Column(Integer, default=0)
    ai_recommendations = Column(JSON, nullable=True)
    timeline = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "career_goal": self.career_goal,
            "current_level": self.current_level,
            "duration_months": self.duration_months,
            "roadmap_data": self.roadmap_data or {},
            "ai_generated": self.ai_generated,
            "progress": self.progress,
            "ai_recommendations": self.ai_recommendations or {},
            "timeline": self.timeline or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
