from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    message: Optional[str] = None
    context: Optional[Dict[str, Any]] = None
    conversationHistory: List[ChatMessage] = Field(default_factory=list)
