"""
Database models module.

Imports every model so it is registered with Base.metadata before table creation.
"""
from career_advisor.db.models.user import User
from career_advisor.db.models.subscription import Subscription
from career_advisor.db.models.usage import UsageMetric
from career_advisor.db.models.skill import Skill
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.college import College
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.db.models.achievement import Achievement
from career_advisor.db.models.activity import Activity
from career_advisor.db.models.roadmap import Roadmap
from career_advisor.db.models.resume import Resume
from career_advisor.db.models.match_analysis import JobMatch
from career_advisor.db.models.outreach_message import OutreachDraft, OutreachType

__all__ = [
    "User",
    "Subscription",
    "UsageMetric",
    "Skill",
    "QuizResult",
    "College",
    "SavedCollege",
    "Achievement",
    "Activity",
    "Roadmap",
    "Resume",
    "JobMatch",
    "OutreachDraft",
    "OutreachType",
]
