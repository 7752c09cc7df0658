"""
Pydantic schemas for quiz endpoints.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class PersonalInfo(BaseModel):
    interests: List[str] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    goals: List[str] = Field(default_factory=list)
    experience: str = "beginner"
    education: str = ""
    preferredWorkStyle: str = ""
    industryPreferences: List[str] = Field(default_factory=list)


class QuizSubmission(BaseModel):
    """Request schema for POST /api/quiz/submit. Every field has a default."""
    quizType: str = "career_assessment"
    responses: List[Any] = Field(default_factory=list)
    personalInfo: PersonalInfo = Field(default_factory=PersonalInfo)

    class Config:
        json_schema_extra = {
            "example": {
                "quizType": "career_assessment",
                "responses": [{"questionId": 1, "answer": "I enjoy solving puzzles"}],
                "personalInfo": {
                    "interests": ["Technology", "Programming"],
                    "skills": ["Programming"],
                    "experience": "beginner",
                },
            }
        }


class QuizSubmitResponse(BaseModel):
    success: bool = True
    recommendations: Dict[str, Any]
    source: str = Field(..., description="primary (AI), fallback (rule-based) or default")
    message: Optional[str] = None
