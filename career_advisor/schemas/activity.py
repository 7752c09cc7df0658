from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class LogActivityRequest(BaseModel):
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
