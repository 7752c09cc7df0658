"""
Personalized recommendations.

Builds a prompt from the user's skills, saved colleges, quiz history and
recent activity, asks the AI provider for a ranked list, and falls back to
deterministic rules whenever the provider fails or returns unusable output.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from career_advisor.core.fallback import FALLBACK, PRIMARY, Sourced, settled
from career_advisor.db.models.activity import Activity
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.db.models.skill import Skill
from career_advisor.llm.parsing import ResponseParseError, parse_json_object
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.router import get_model_for_feature
from career_advisor.services import activity_service

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 5
RECENT_ACTIVITY_LIMIT = 10
RECOMMENDATION_TYPES = {"career", "skill", "college", "roadmap", "job"}

SYSTEM_PROMPT = "You are an expert career advisor. Respond with valid JSON only."

GENERIC_RECOMMENDATIONS: List[Dict[str, Any]] = [
    {
        "id": "fallback-1",
        "type": "career",
        "title": "Complete Your Career Assessment",
        "description": "Take our quiz to discover your ideal career path",
        "confidence": 0.9,
        "action": "Start Quiz",
        "metadata": {},
    },
    {
        "id": "fallback-2",
        "type": "skill",
        "title": "Add Your Skills",
        "description": "Build your skill profile to get personalized recommendations",
        "confidence": 0.8,
        "action": "Add Skills",
        "metadata": {},
    },
    {
        "id": "fallback-3",
        "type": "college",
        "title": "Explore Colleges",
        "description": "Browse our database of colleges and universities",
        "confidence": 0.7,
        "action": "Browse Colleges",
        "metadata": {},
    },
]


@dataclass
class UserContext:
    """Everything the generator knows about a user."""
    skills: List[Skill] = field(default_factory=list)
    saved_colleges: List[SavedCollege] = field(default_factory=list)
    quiz_results: List[QuizResult] = field(default_factory=list)
    activities: List[Activity] = field(default_factory=list)

    @property
    def experience_level(self) -> str:
        return determine_experience_level(self.skills, len(self.quiz_results))


def gather_context(db: Session, user_id: str) -> UserContext:
    """Load the user's state. Each read degrades to an empty list on its own."""
    return UserContext(
        skills=settled(
            db, "Recommendation skills",
            lambda: db.query(Skill).filter(Skill.user_id == user_id).all(),
            [],
        ),
        saved_colleges=settled(
            db, "Recommendation saved colleges",
            lambda: db.query(SavedCollege).filter(SavedCollege.user_id == user_id).all(),
            [],
        ),
        quiz_results=settled(
            db, "Recommendation quiz results",
            lambda: db.query(QuizResult)
            .filter(QuizResult.user_id == user_id)
            .order_by(QuizResult.created_at.desc())
            .all(),
            [],
        ),
        activities=settled(
            db, "Recommendation activities",
            lambda: activity_service.list_recent(db, user_id, RECENT_ACTIVITY_LIMIT),
            [],
        ),
    )


def determine_experience_level(skills: List[Skill], quiz_count: int) -> str:
    """advanced, intermediate or beginner from average skill level and quiz count."""
    average = sum(s.current_level or 0 for s in skills) / max(len(skills), 1)
    if average > 75 or quiz_count > 3:
        return "advanced"
    if average > 50 or quiz_count > 1:
        return "intermediate"
    return "beginner"


def build_prompt(context: UserContext) -> str:
    skills = ", ".join(
        f"{s.skill_name} ({s.current_level}% of target {s.target_level}%)" for s in context.skills
    ) or "None tracked"
    colleges = ", ".join(c.college_name for c in context.saved_colleges) or "None saved"
    careers = ", ".join(q.career_path for q in context.quiz_results) or "No quizzes taken"
    activity = ", ".join(f"{a.type}: {a.title}" for a in context.activities) or "No recent activity"

    return f"""Based on this user's profile, recommend up to {MAX_RECOMMENDATIONS} next steps for their career journey.

Experience level: {context.experience_level}
Skills: {skills}
Saved colleges: {colleges}
Quiz career paths: {careers}
Recent activity: {activity}

Return a JSON object in this format:
{{
  "recommendations": [
    {{
      "id": "short-kebab-case-id",
      "type": "career|skill|college|roadmap|job",
      "title": "Short title",
      "description": "One or two sentences",
      "confidence": 0.85,
      "action": "Button label",
      "metadata": {{}}
    }}
  ]
}}

Return ONLY valid JSON."""


def _normalize(item: Any, index: int) -> Optional[Dict[str, Any]]:
    """Coerce one AI item to the recommendation shape, or None if unusable."""
    if not isinstance(item, dict) or not item.get("title"):
        return None
    try:
        confidence = float(item.get("confidence", 0.5))
    except (TypeError, ValueError):
        confidence = 0.5
    item_type = str(item.get("type") or "career")
    metadata = item.get("metadata")
    return {
        "id": str(item.get("id") or f"ai-{index + 1}"),
        "type": item_type if item_type in RECOMMENDATION_TYPES else "career",
        "title": str(item["title"]),
        "description": str(item.get("description") or ""),
        "confidence": max(0.0, min(1.0, confidence)),
        "action": str(item.get("action") or "Learn More"),
        "metadata": metadata if isinstance(metadata, dict) else {},
    }


def _ai_recommendations(context: UserContext, provider: LLMProvider) -> List[Dict[str, Any]]:
    """
    Raises:
        ResponseParseError: Output is not a usable recommendation list
        Exception: Provider failures propagate to the caller
    """
    text = provider.complete(
        SYSTEM_PROMPT,
        build_prompt(context),
        model=get_model_for_feature("recommendations"),
        temperature=0.7,
        max_tokens=1500,
    )
    parsed = parse_json_object(text)
    items = parsed.get("recommendations")
    if not isinstance(items, list):
        raise ResponseParseError("AI result has no recommendations list", text)
    recommendations = [r for r in (_normalize(item, i) for i, item in enumerate(items)) if r]
    if not recommendations:
        raise ResponseParseError("AI result has no usable recommendations", text)
    return recommendations[:MAX_RECOMMENDATIONS]


def rule_based_recommendations(
    skills: List[Skill],
    saved_college_count: int,
    quiz_count: int,
) -> List[Dict[str, Any]]:
    """Deterministic suggestions from the user's current state (may be empty)."""
    recommendations = []

    if not skills and quiz_count == 0:
        recommendations.append({
            "id": "onboarding-quiz",
            "type": "career",
            "title": "Take Your First Career Assessment",
            "description": "Discover your strengths and ideal career path with AI-powered analysis",
            "confidence": 0.95,
            "action": "Start Quiz",
            "metadata": {"reason": "Career assessment helps personalize your experience"},
        })

    below_target = [s for s in skills if s.current_level < s.target_level]
    if below_target:
        skill = min(below_target, key=lambda s: s.current_level)
        recommendations.append({
            "id": f"skill-{skill.id}",
            "type": "skill",
            "title": f"Focus on {skill.skill_name}",
            "description": f"Advance your {skill.skill_name} skills to reach your target level",
            "confidence": 0.85,
            "action": "View Learning Path",
            "metadata": {
                "reason": f"Gap identified: {skill.current_level}% current vs {skill.target_level}% target",
            },
        })

    if saved_college_count == 0 and quiz_count > 0:
        recommendations.append({
            "id": "college-search",
            "type": "college",
            "title": "Find Matching Colleges",
            "description": "Explore colleges that align with your career assessment results",
            "confidence": 0.8,
            "action": "Search Colleges",
            "metadata": {"reason": "Career path identified but no colleges saved"},
        })

    return recommendations


def fallback_recommendations(context: UserContext) -> List[Dict[str, Any]]:
    """Rule-based list padded with generic items; never empty."""
    recommendations = rule_based_recommendations(
        context.skills, len(context.saved_colleges), len(context.quiz_results)
    )
    for generic in GENERIC_RECOMMENDATIONS:
        if len(recommendations) >= MAX_RECOMMENDATIONS:
            break
        recommendations.append(dict(generic))
    return recommendations[:MAX_RECOMMENDATIONS]


def generate(db: Session, user_id: str, provider: Optional[LLMProvider]) -> Sourced[List[Dict[str, Any]]]:
    """
    Recommendations for a user, at most five.

    Returns:
        Sourced with source "primary" for AI output, "fallback" for rules
    """
    context = gather_context(db, user_id)

    result = None
    if provider is not None:
        try:
            result = Sourced(PRIMARY, _ai_recommendations(context, provider))
        except ResponseParseError as e:
            logger.error(f"Failed to parse AI recommendations, using rules. Raw response: {e.raw_text[:500]}")
        except Exception as e:
            logger.warning(f"AI recommendations failed, using rules: {e}")
    if result is None:
        result = Sourced(FALLBACK, fallback_recommendations(context))

    activity_service.record(
        db,
        user_id,
        "recommendation",
        "AI Recommendations Generated",
        f"Generated {len(result.data)} personalized recommendations",
        {
            "recommendationCount": len(result.data),
            "source": result.source,
            "dataPoints": {
                "skills": len(context.skills),
                "quizzes": len(context.quiz_results),
                "savedColleges": len(context.saved_colleges),
                "activities": len(context.activities),
            },
        },
    )
    return result

