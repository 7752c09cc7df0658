"""
Pydantic schemas for job-hunting endpoints.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class AnalyzeResumeRequest(BaseModel):
    resumeText: Optional[str] = None
    fileName: Optional[str] = None


class MatchResumeRequest(BaseModel):
    resumeText: Optional[str] = None
    jobDescription: Optional[str] = None
    jobTitle: Optional[str] = None
    company: Optional[str] = None


class OutreachRequest(BaseModel):
    type: str = Field("email", description="email, cover-letter or linkedin-message")
    jobTitle: Optional[str] = None
    company: Optional[str] = None
    recipientName: Optional[str] = None
    userSkills: List[str] = Field(default_factory=list)
    jobMatchId: Optional[int] = None


class ResumeAnalysis(BaseModel):
    skills: List[str] = Field(default_factory=list)
    experience_years: int = 0
    experience_level: str = "entry"
    summary: str = ""
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


class MatchAnalysis(BaseModel):
    match_score: float = Field(..., ge=0, le=100)
    matching_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class OutreachDraftResponse(BaseModel):
    type: str
    subject: Optional[str] = None
    content: str
