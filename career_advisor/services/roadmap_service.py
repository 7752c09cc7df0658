"""
AI career roadmap generation.

The provider returns phases of milestones; they are laid out as graph nodes
and connections for the roadmap view and stored with the roadmap. Generation
has no rule-based fallback: a provider failure is reported to the caller.
"""
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.errors import AIGenerationError, ValidationFailed
from career_advisor.core.fallback import store_failed
from career_advisor.db.models.roadmap import Roadmap
from career_advisor.llm.parsing import parse_json_object
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.router import get_model_for_feature
from career_advisor.schemas.roadmap import RoadmapRequest
from career_advisor.services import activity_service

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert career planner. Respond with valid JSON only."

PHASE_SPACING_X = 300
PHASE_Y = 100
MILESTONE_START_Y = 200
MILESTONE_SPACING_Y = 150


def build_prompt(request: RoadmapRequest) -> str:
    interests = ", ".join(request.interests) or "Not specified"
    skills = ", ".join(request.skill_list) or "Not specified"
    months = request.duration_months
    return f"""Create a detailed career roadmap for someone wanting to achieve this goal: "{request.careerGoal}"

Profile:
- Current Level: {request.currentLevel or "beginner"}
- Timeframe: {months} months
- Interests: {interests}
- Current Skills: {skills}
- Learning Style: {request.learningStyle or "Not specified"}
- Budget: {request.budget or "Not specified"}

Return a JSON object with this structure:
{{
  "title": "Roadmap title",
  "description": "Brief description of the career path",
  "phases": [
    {{
      "id": "phase-1",
      "title": "Phase name",
      "duration": "months for this phase",
      "description": "What will be accomplished",
      "milestones": [
        {{
          "id": "milestone-1",
          "title": "Milestone name",
          "description": "Specific goal",
          "skills": ["skill1", "skill2"],
          "resources": [{{"type": "course", "name": "Resource name", "url": "https://...", "cost": "Free", "duration": "4 weeks"}}],
          "deliverables": ["deliverable 1"]
        }}
      ]
    }}
  ],
  "recommendations": {{
    "colleges": [{{"name": "College", "location": "City", "program": "Program", "why": "Reason", "type": "Public"}}],
    "certifications": ["cert1"],
    "networking": ["opportunity1"],
    "portfolio": ["project1"]
  }},
  "timeline": {{
    "short_term": "1-3 month goals",
    "medium_term": "6-12 month goals",
    "long_term": "12+ month goals"
  }}
}}

Make it specific, actionable and realistic for {months} months, with 4-6 phases of 3-5 milestones each.
Return ONLY valid JSON."""


def categorize_failure(error: Exception) -> str:
    """User-facing reason for a failed generation."""
    message = str(error).lower()
    if "rate limit" in message or "quota" in message:
        return "API quota exceeded. Please try again later."
    if "api key" in message:
        return "AI service authentication failed. Please check configuration."
    if "model not found" in message or "model_not_found" in message:
        return "AI model not available. Please try again later."
    return "Unable to connect to AI services. Please check your connection and try again."


def generate_content(request: RoadmapRequest, provider: Optional[LLMProvider], tier: str = "free") -> Dict[str, Any]:
    """
    Ask the provider for a roadmap.

    Raises:
        AIGenerationError: No provider, provider failure or unusable output
    """
    try:
        if provider is None:
            raise RuntimeError("OpenAI API key not configured")
        text = provider.complete(
            SYSTEM_PROMPT,
            build_prompt(request),
            model=get_model_for_feature("roadmap", tier),
            temperature=0.7,
            max_tokens=2500,
        )
        data = parse_json_object(text)
    except Exception as e:
        logger.error(f"Roadmap generation failed: {type(e).__name__}: {e}")
        raise AIGenerationError(f"AI generation failed: {categorize_failure(e)}", original_error=e)

    if not isinstance(data.get("phases"), list):
        data["phases"] = []
    return data


def layout_graph(phases: List[Any]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Place phases in a row and their milestones below them.

    Each phase links to its milestones and to the previous phase.
    """
    nodes: List[Dict[str, Any]] = []
    connections: List[Dict[str, Any]] = []

    for i, phase in enumerate(phases):
        if not isinstance(phase, dict):
            continue
        nodes.append({
            "id": f"phase-{i}",
            "type": "phase",
            "position": {"x": i * PHASE_SPACING_X, "y": PHASE_Y},
            "data": {
                "title": phase.get("title"),
                "description": phase.get("description"),
                "duration": phase.get("duration"),
            },
        })

        milestones = phase.get("milestones")
        for j, milestone in enumerate(milestones if isinstance(milestones, list) else []):
            if not isinstance(milestone, dict):
                continue
            nodes.append({
                "id": f"milestone-{i}-{j}",
                "type": "milestone",
                "position": {"x": i * PHASE_SPACING_X, "y": MILESTONE_START_Y + j * MILESTONE_SPACING_Y},
                "data": {
                    "title": milestone.get("title"),
                    "description": milestone.get("description"),
                    "skills": milestone.get("skills") or [],
                    "resources": milestone.get("resources") or [],
                    "deliverables": milestone.get("deliverables") or [],
                },
            })
            connections.append({
                "id": f"connection-{i}-{j}",
                "source": f"phase-{i}",
                "target": f"milestone-{i}-{j}",
            })

        if i > 0:
            connections.append({
                "id": f"phase-connection-{i}",
                "source": f"phase-{i - 1}",
                "target": f"phase-{i}",
            })

    return nodes, connections


def _unsaved(record: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.utcnow().isoformat()
    return {
        **record,
        "id": f"roadmap_{int(time.time() * 1000)}",
        "created_at": now,
        "saved": False,
    }


def require_career_goal(request: RoadmapRequest) -> str:
    goal = (request.careerGoal or "").strip()
    if not goal:
        raise ValidationFailed("Career goal is required")
    return goal


def create_roadmap(
    db: Session,
    user_id: str,
    request: RoadmapRequest,
    provider: Optional[LLMProvider],
    tier: str = "free",
) -> Dict[str, Any]:
    """
    Generate, lay out and store a roadmap.

    A store failure still returns the generated roadmap, marked unsaved.

    Raises:
        ValidationFailed: Missing career goal
        AIGenerationError: Generation failed
    """
    goal = require_career_goal(request)

    content = generate_content(request, provider, tier)
    phases = content["phases"]
    nodes, connections = layout_graph(phases)
    recommendations = content.get("recommendations") or {}
    timeline = content.get("timeline") or {}

    record = {
        "user_id": user_id,
        "title": content.get("title") or f"{goal} Roadmap",
        "description": content.get("description") or f"Comprehensive roadmap to become a {goal}",
        "career_goal": goal,
        "current_level": request.currentLevel,
        "duration_months": request.duration_months,
        "roadmap_data": {"phases": phases, "nodes": nodes, "connections": connections},
        "ai_generated": True,
        "progress": 0,
        "ai_recommendations": recommendations,
        "timeline": timeline,
    }

    try:
        roadmap = Roadmap(**record)
        db.add(roadmap)
        db.commit()
        db.refresh(roadmap)
        saved = {**roadmap.to_dict(), "saved": True}
        logger.info(f"Roadmap saved: id={roadmap.id}, user_id={user_id}, phases={len(phases)}")
    except SQLAlchemyError as e:
        store_failed(db, "roadmap", e, "Roadmap generation")
        saved = _unsaved(record)

    activity_service.record(
        db,
        user_id,
        "roadmap_generated",
        "Generated AI Career Roadmap",
        f"Created roadmap for: {goal}",
        {
            "roadmap_id": saved["id"],
            "career_goal": goal,
            "current_level": request.currentLevel,
            "duration_months": request.duration_months,
            "phases_count": len(phases),
        },
    )
    return saved


def list_roadmaps(db: Session, user_id: str) -> List[Roadmap]:
    return (
        db.query(Roadmap)
        .filter(Roadmap.user_id == user_id)
        .order_by(Roadmap.created_at.desc(), Roadmap.id.desc())
        .all()
    )
