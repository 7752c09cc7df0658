"""
Career assistant chat.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from career_advisor.core.errors import ValidationFailed
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.router import get_model_for_feature
from career_advisor.schemas.chat import ChatRequest

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
ALLOWED_ROLES = {"user", "assistant"}

SYSTEM_PROMPT = (
    "You are a friendly career advisor for students and early-career professionals. "
    "Give concise, practical advice about careers, skills, colleges and job hunting. "
    "Suggest the platform's Career Quiz, College Finder, Skill Tracker or Roadmap "
    "generator when they fit the question."
)

# (keywords, reply) pairs checked in order
CANNED_REPLIES = [
    (("quiz", "assessment", "which career", "career path"),
     "The Career Quiz is the best place to start: it matches your interests and skills "
     "to career paths and suggests the skills to build next."),
    (("college", "university", "admission"),
     "Use the College Finder to search by name, major or state, and save the colleges "
     "you like so you can compare them later."),
    (("skill", "learn", "course"),
     "Add your skills in the Skill Tracker and set a target level for each. Focus first "
     "on the skills furthest from their target."),
    (("roadmap", "plan", "timeline"),
     "The Roadmap generator builds a phase-by-phase learning plan for a career goal "
     "and timeframe you choose."),
    (("resume", "cv", "job", "interview", "cover letter"),
     "The Job Hunting tools can analyze your resume, score it against a job description "
     "and draft outreach messages."),
]

DEFAULT_REPLY = (
    "I can help with career paths, skills, colleges and job hunting. Try the Career Quiz "
    "or the College Finder, or ask me a more specific question."
)


def canned_reply(message: str) -> str:
    """Keyword-based answer used when the AI provider is unavailable."""
    text = message.lower()
    for keywords, reply in CANNED_REPLIES:
        if any(keyword in text for keyword in keywords):
            return reply
    return DEFAULT_REPLY


def _context_note(context: Optional[Dict[str, Any]]) -> Optional[str]:
    if not context:
        return None
    parts = []
    for key in ("careerGoals", "skills", "interests"):
        value = context.get(key)
        if isinstance(value, list) and value:
            parts.append(f"{key}: {', '.join(str(v) for v in value)}")
    if context.get("currentLevel"):
        parts.append(f"currentLevel: {context['currentLevel']}")
    return "User profile - " + "; ".join(parts) if parts else None


def build_messages(request: ChatRequest, message: str) -> List[Dict[str, str]]:
    messages = [{"role": "system", "content": SYSTEM_PROMPT}]
    note = _context_note(request.context)
    if note:
        messages.append({"role": "system", "content": note})
    for turn in request.conversationHistory[-HISTORY_LIMIT:]:
        if turn.role in ALLOWED_ROLES and turn.content:
            messages.append({"role": turn.role, "content": turn.content})
    messages.append({"role": "user", "content": message})
    return messages


def reply(request: ChatRequest, provider: Optional[LLMProvider], tier: str = "free") -> Dict[str, Any]:
    """
    Answer one chat message.

    Returns:
        {response, timestamp, source}

    Raises:
        ValidationFailed: Empty message
    """
    message = (request.message or "").strip()
    if not message:
        raise ValidationFailed("Message is required")

    if provider is not None:
        try:
            response = provider.chat(
                build_messages(request, message),
                model=get_model_for_feature("chat", tier),
                temperature=0.7,
                max_tokens=800,
            )
            content = (response.content or "").strip()
            if content:
                return {"response": content, "timestamp": datetime.utcnow().isoformat(), "source": "primary"}
            logger.warning("AI chat returned an empty reply, using canned reply")
        except Exception as e:
            logger.warning(f"AI chat failed, using canned reply: {e}")

    return {"response": canned_reply(message), "timestamp": datetime.utcnow().isoformat(), "source": "fallback"}
