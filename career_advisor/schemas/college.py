"""
Pydantic schemas for college and saved-college endpoints.
"""
from typing import Optional
from pydantic import BaseModel


class CollegeActionRequest(BaseModel):
    """Request schema for POST /api/colleges."""
    action: Optional[str] = None
    collegeId: Optional[str] = None
    collegeName: Optional[str] = None
    collegeLocation: Optional[str] = None
    collegeType: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "action": "save",
                "collegeId": "1",
                "collegeName": "Indian Institute of Technology Delhi",
                "collegeLocation": "Hauz Khas, New Delhi",
                "collegeType": "Government",
            }
        }


class SaveCollegeRequest(BaseModel):
    """Request schema for POST /api/saved-colleges. Presence is checked by the route."""
    collegeId: Optional[str] = None
    collegeName: Optional[str] = None
    collegeLocation: Optional[str] = None
    collegeType: Optional[str] = None
