"""
Pydantic schemas for roadmap endpoints.
"""
from typing import List, Optional, Union
from pydantic import BaseModel, Field


class RoadmapRequest(BaseModel):
    careerGoal: Optional[str] = None
    currentLevel: Optional[str] = "beginner"
    timeframe: Optional[Union[int, str]] = 6
    interests: List[str] = Field(default_factory=list)
    skills: Optional[List[str]] = None
    currentSkills: Optional[List[str]] = None
    learningStyle: Optional[str] = None
    budget: Optional[str] = None

    @property
    def skill_list(self) -> List[str]:
        """Skills may arrive as either skills or currentSkills."""
        return self.skills or self.currentSkills or []

    @property
    def duration_months(self) -> int:
        try:
            return max(1, int(self.timeframe))
        except (TypeError, ValueError):
            return 6
