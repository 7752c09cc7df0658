"""
Skill tracking: add, update, delete and summarize a user's skills.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from career_advisor.core.errors import NotFound, ValidationFailed
from career_advisor.db.models.skill import Skill

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "General"
FOCUS_THRESHOLD = 50


def clamp_level(value: Any, default: int = 0) -> int:
    """Coerce a level to an int in [0, 100]."""
    try:
        level = int(round(float(value)))
    except (TypeError, ValueError):
        level = default
    return max(0, min(100, level))


def list_skills(db: Session, user_id: str) -> List[Skill]:
    return (
        db.query(Skill)
        .filter(Skill.user_id == user_id)
        .order_by(Skill.updated_at.desc(), Skill.id.desc())
        .all()
    )


def skill_stats(skills: List[Skill]) -> Dict[str, Any]:
    total = len(skills)
    average = round(sum(s.current_level for s in skills) / total) if total else 0
    return {
        "totalSkills": total,
        "averageProgress": average,
        "skillsImproving": sum(1 for s in skills if 0 < s.current_level < s.target_level),
        "skillsToFocus": sum(1 for s in skills if s.current_level < FOCUS_THRESHOLD),
        "skillsCompleted": sum(1 for s in skills if s.current_level >= s.target_level),
    }


def add_skill(
    db: Session,
    user_id: str,
    skill_name: Optional[str],
    current_level: Any = 0,
    target_level: Any = 100,
    category: Optional[str] = None,
) -> Skill:
    """
    Add a skill, or update it if the user already tracks one with that name.

    Raises:
        ValidationFailed: Missing skill name
    """
    name = (skill_name or "").strip()
    if not name:
        raise ValidationFailed("Skill name is required")

    skill = db.query(Skill).filter(Skill.user_id == user_id, Skill.skill_name == name).first()
    if skill is None:
        skill = Skill(user_id=user_id, skill_name=name)
        db.add(skill)
    skill.current_level = clamp_level(current_level)
    skill.target_level = clamp_level(target_level, default=100)
    skill.category = category or skill.category or DEFAULT_CATEGORY
    db.commit()
    db.refresh(skill)
    logger.info(f"Skill saved: user_id={user_id}, skill={name}, level={skill.current_level}/{skill.target_level}")
    return skill


def update_skill(
    db: Session,
    user_id: str,
    skill_id: Optional[int],
    current_level: Any = None,
    target_level: Any = None,
    category: Optional[str] = None,
) -> Skill:
    """
    Raises:
        ValidationFailed: Missing skill id
        NotFound: No such skill for this user
    """
    if skill_id is None:
        raise ValidationFailed("Skill ID is required")
    skill = db.query(Skill).filter(Skill.id == skill_id, Skill.user_id == user_id).first()
    if skill is None:
        raise NotFound("Skill not found")

    if current_level is not None:
        skill.current_level = clamp_level(current_level)
    if target_level is not None:
        skill.target_level = clamp_level(target_level, default=100)
    if category:
        skill.category = category
    db.commit()
    db.refresh(skill)
    return skill


def delete_skill(db: Session, user_id: str, skill_id: Optional[int]) -> bool:
    """
    Delete a skill. Returns False when nothing matched.

    Raises:
        ValidationFailed: Missing skill id
    """
    if skill_id is None:
        raise ValidationFailed("Skill ID is required")
    deleted = db.query(Skill).filter(Skill.id == skill_id, Skill.user_id == user_id).delete()
    db.commit()
    return deleted > 0
