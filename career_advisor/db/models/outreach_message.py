"""
OutreachDraft model for generated job-hunting messages.
"""
from datetime import datetime
import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from career_advisor.db.base import Base


class OutreachType(str, enum.Enum):
    """Types of outreach drafts."""
    EMAIL = "email"
    COVER_LETTER = "cover-letter"
    LINKEDIN_MESSAGE = "linkedin-message"


class OutreachDraft(Base):
    __tablename__ = "outreach_drafts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    job_match_id = Column(Integer, ForeignKey("job_matches.id"), nullable=True, index=True)

    draft_type = Column(String, nullable=False)  # OutreachType value
    subject = Column(String, nullable=True)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_outreach_user_type", "user_id", "draft_type"),
    )

    def __repr__(self):
        return f"<OutreachDraft(id={self.id}, user_id={self.user_id}, type='{self.draft_type}')>"
