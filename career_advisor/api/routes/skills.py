"""
Skill tracker endpoints.

POST takes an action (add, update, delete). Store failures answer success
marked "(local)" so the client keeps its optimistic state.
"""
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import get_user_id_or_demo
from career_advisor.core.errors import ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.models.skill import Skill
from career_advisor.db.session import get_db
from career_advisor.schemas.skill import SkillActionRequest
from career_advisor.services import activity_service, skill_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/skills", tags=["Skills"])


def _serialize(skill: Skill) -> dict:
    return {
        "id": skill.id,
        "name": skill.skill_name,
        "currentLevel": skill.current_level,
        "targetLevel": skill.target_level,
        "category": skill.category,
        "lastUpdated": skill.updated_at.isoformat() if skill.updated_at else None,
    }


def _by_category(skills: List[dict]) -> Dict[str, List[dict]]:
    grouped: Dict[str, List[dict]] = {}
    for skill in skills:
        grouped.setdefault(skill["category"], []).append(skill)
    return grouped


@router.get("")
def list_skills(user_id: str = Depends(get_user_id_or_demo), db: Session = Depends(get_db)):
    try:
        rows = skill_service.list_skills(db, user_id)
    except SQLAlchemyError as e:
        store_failed(db, "skills", e, "Skills API")
        rows = []

    skills = [_serialize(row) for row in rows]
    return {
        "skills": skills,
        "stats": skill_service.skill_stats(rows),
        "skillsByCategory": _by_category(skills),
    }


def _log_skill(db: Session, user_id: str, title: str, skill_name: str, metadata: dict) -> None:
    activity_service.record(db, user_id, "skill_updated", title, skill_name, metadata)


@router.post("")
def skill_action(
    payload: SkillActionRequest,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    action = payload.action
    if action not in ("add", "update", "delete"):
        raise ValidationFailed("Invalid action")

    try:
        if action == "add":
            skill = skill_service.add_skill(
                db,
                user_id,
                payload.skillName,
                payload.currentLevel if payload.currentLevel is not None else 0,
                payload.targetLevel if payload.targetLevel is not None else 100,
                payload.category,
            )
            _log_skill(db, user_id, f"Added skill: {skill.skill_name}", skill.skill_name, {
                "skill_id": skill.id,
                "current_level": skill.current_level,
                "target_level": skill.target_level,
            })
            return {"success": True, "message": "Skill added successfully", "skill": _serialize(skill)}

        if action == "update":
            skill = skill_service.update_skill(
                db,
                user_id,
                payload.skillId,
                payload.currentLevel,
                payload.targetLevel,
                payload.category,
            )
            _log_skill(db, user_id, f"Updated skill: {skill.skill_name}", skill.skill_name, {
                "skill_id": skill.id,
                "current_level": skill.current_level,
                "target_level": skill.target_level,
            })
            return {"success": True, "message": "Skill updated successfully", "skill": _serialize(skill)}

        return _delete(db, user_id, payload.skillId)
    except SQLAlchemyError as e:
        store_failed(db, "skills", e, "Skills API")
        verb = {"add": "added", "update": "updated", "delete": "deleted"}[action]
        return {"success": True, "message": f"Skill {verb} successfully (local)"}


def _delete(db: Session, user_id: str, skill_id: Optional[int]) -> dict:
    skill = db.query(Skill).filter(Skill.id == skill_id, Skill.user_id == user_id).first() if skill_id else None
    name = skill.skill_name if skill else None
    deleted = skill_service.delete_skill(db, user_id, skill_id)
    if deleted:
        _log_skill(db, user_id, f"Removed skill: {name}", name or "", {"skill_id": skill_id})
    return {"success": True, "message": "Skill deleted successfully", "deleted": deleted}


@router.delete("")
def delete_skill(
    skillId: Optional[int] = None,
    user_id: str = Depends(get_user_id_or_demo),
    db: Session = Depends(get_db),
):
    if skillId is None:
        raise ValidationFailed("Missing skill ID")
    try:
        return _delete(db, user_id, skillId)
    except SQLAlchemyError as e:
        store_failed(db, "skills", e, "Skills API")
        return {"success": True, "message": "Skill deleted successfully (local)"}
