"""
AI provider dependency.

One provider instance is built per process and handed to handlers through
FastAPI's dependency system, so tests can override it.
"""
import logging
from functools import lru_cache
from typing import Optional

from career_advisor.core import config
from career_advisor.llm.provider import LLMProvider
from career_advisor.llm.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


@lru_cache()
def _build_provider() -> Optional[LLMProvider]:
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not configured - AI features will use rule-based fallbacks")
        return None
    return OpenAIProvider()


def get_llm_provider() -> Optional[LLMProvider]:
    """The configured AI provider, or None when AI is not configured."""
    return _build_provider()
