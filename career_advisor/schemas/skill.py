"""
Pydantic schemas for skill endpoints.
"""
from typing import Optional, Union
from pydantic import BaseModel


class SkillActionRequest(BaseModel):
    """Request schema for POST /api/skills. Levels are clamped to 0-100, not rejected."""
    action: Optional[str] = None
    skillId: Optional[int] = None
    skillName: Optional[str] = None
    currentLevel: Optional[Union[int, float]] = None
    targetLevel: Optional[Union[int, float]] = None
    category: Optional[str] = None
