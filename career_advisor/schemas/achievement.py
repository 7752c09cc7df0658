from typing import Optional
from pydantic import BaseModel


class AwardAchievementRequest(BaseModel):
    achievementId: Optional[str] = None
    checkOnly: bool = False
