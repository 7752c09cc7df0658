"""
Quiz analysis: AI first, rule-based scoring as fallback, fixed defaults last.
"""
import copy
import json
import logging
import random
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from career_advisor.core.auth_dependency import is_demo_user
from career_advisor.core.fallback import FALLBACK, PRIMARY, Sourced, store_failed
from career_advisor.db.models.quiz_result import QuizResult
from career_advisor.db.models.skill import Skill
from career_advisor.llm.parsing import ResponseParseError, parse_json_object
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.router import get_model_for_feature
from career_advisor.schemas.quiz import QuizSubmission
from career_advisor.services import activity_service, quiz_scoring
from career_advisor.services.skill_service import clamp_level

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an expert career counselor. Respond with valid JSON only."

QUIZ_SKILL_CATEGORY = "Quiz Assessment"


def parse_submission(payload: Any) -> QuizSubmission:
    """
    Read a quiz body leniently.

    Anything that does not validate (including a non-object body) is replaced
    by the defaults rather than rejected.
    """
    if not isinstance(payload, dict):
        return QuizSubmission()
    try:
        return QuizSubmission.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Invalid quiz payload, using defaults: {e.error_count()} errors")
        return QuizSubmission()


def build_prompt(submission: QuizSubmission) -> str:
    return f"""Analyze this career assessment quiz data and provide detailed career recommendations:

Quiz Responses: {json.dumps(submission.responses, default=str)}
Personal Info: {submission.personalInfo.model_dump_json()}

Provide a comprehensive analysis in this JSON format:
{{
  "primaryCareer": {{
    "title": "Most suitable career title",
    "match": 85,
    "description": "Why this career fits",
    "skills": ["required skills"],
    "industries": ["relevant industries"],
    "salaryRange": "$60,000 - $120,000",
    "outlook": "Growth prospects and demand"
  }},
  "alternativeCareers": [
    {{"title": "Alternative career", "match": 78, "description": "Why this is a good alternative", "skills": ["required skills"]}}
  ],
  "aiAnalysis": {{
    "personalityProfile": "Personality analysis based on responses",
    "strengths": ["key strengths"],
    "developmentAreas": ["areas to focus on"],
    "summary": "Career guidance summary"
  }},
  "skillGaps": [{{"skill": "Skill name", "priority": "high|medium|low", "description": "Why it matters"}}],
  "nextSteps": ["Specific actionable steps"]
}}

Consider the person's experience level, interests, and goals. Return ONLY valid JSON."""


def _ai_recommendations(submission: QuizSubmission, provider: LLMProvider) -> Dict[str, Any]:
    """
    Raises:
        ResponseParseError: Output is not usable
        Exception: Provider failures propagate to the caller
    """
    text = provider.complete(
        SYSTEM_PROMPT,
        build_prompt(submission),
        model=get_model_for_feature("quiz_analysis"),
        temperature=0.3,
        max_tokens=2000,
    )
    result = parse_json_object(text)
    primary = result.get("primaryCareer")
    if not isinstance(primary, dict) or not primary.get("title"):
        raise ResponseParseError("AI result has no primaryCareer.title", text)
    try:
        primary["match"] = max(0, min(100, round(float(primary.get("match", 0)))))
    except (TypeError, ValueError):
        primary["match"] = 0
    result.setdefault("alternativeCareers", [])
    result.setdefault("skillGaps", [])
    result.setdefault("nextSteps", [])
    return result


def analyze(
    submission: QuizSubmission,
    provider: Optional[LLMProvider],
    rng: Optional[random.Random] = None,
) -> Sourced[Dict[str, Any]]:
    """
    Career recommendations for a submission.

    Returns:
        Sourced with source "primary" for AI output, "fallback" for rule-based
        scoring or the fixed default result
    """
    if provider is not None:
        try:
            return Sourced(PRIMARY, _ai_recommendations(submission, provider))
        except ResponseParseError as e:
            logger.error(f"Failed to parse AI quiz analysis, using rule-based scoring. Raw response: {e.raw_text[:500]}")
        except Exception as e:
            logger.warning(f"AI quiz analysis failed, using rule-based scoring: {e}")

    try:
        return Sourced(FALLBACK, quiz_scoring.score(
            submission.responses,
            submission.personalInfo.model_dump(),
            rng,
        ))
    except Exception as e:
        logger.error(f"Rule-based quiz scoring failed, using default recommendations: {e}", exc_info=True)
        return Sourced(FALLBACK, copy.deepcopy(quiz_scoring.DEFAULT_RECOMMENDATIONS))


def save_results(
    db: Session,
    user_id: str,
    submission: QuizSubmission,
    recommendations: Dict[str, Any],
    rng: Optional[random.Random] = None,
) -> Optional[QuizResult]:
    """
    Persist a quiz result, seed skills from it and log the activity.

    Each step is independent; a failed step is logged and skipped. Nothing is
    stored for the demo user.
    """
    if is_demo_user(user_id):
        logger.info("Demo user quiz (results not saved)")
        return None

    rng = rng or random.Random()
    primary = recommendations.get("primaryCareer", {})
    match = primary.get("match", 0)
    info = submission.personalInfo
    result = None

    try:
        result = QuizResult(
            user_id=user_id,
            quiz_type=submission.quizType,
            career_path=primary.get("title", "Unknown"),
            score=match,
            interests=info.interests,
            skills=info.skills,
            answers=submission.responses,
            ai_analysis=recommendations.get("aiAnalysis"),
        )
        db.add(result)
        db.commit()
        db.refresh(result)
    except SQLAlchemyError as e:
        db.rollback()
        result = None
        store_failed(db, "quiz", e, "Quiz results")

    try:
        for skill_name in dict.fromkeys(info.skills):
            level = clamp_level(match + rng.randint(-10, 10))
            skill = db.query(Skill).filter(Skill.user_id == user_id, Skill.skill_name == skill_name).first()
            if skill is None:
                skill = Skill(user_id=user_id, skill_name=skill_name, category=QUIZ_SKILL_CATEGORY)
                db.add(skill)
            skill.current_level = level
            skill.target_level = min(100, level + 20)
        db.commit()
    except SQLAlchemyError as e:
        store_failed(db, "quiz", e, "Quiz skills")

    activity_service.record(
        db,
        user_id,
        "quiz_completed",
        f"Completed {submission.quizType.replace('_', ' ').title()} Quiz",
        f"Discovered primary career path: {primary.get('title')} ({match}% match)",
        {
            "quiz_result_id": result.id if result else None,
            "career_path": primary.get("title"),
            "match": match,
        },
    )
    return result
