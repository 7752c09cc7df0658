"""
Model router for selecting models by feature and subscription tier.
"""
from career_advisor.core import config

# Feature -> model mapping
MODEL_ROUTING = {
    "recommendations": "gpt-4o-mini",
    "quiz_analysis": "gpt-4o-mini",
    "roadmap": "gpt-4o-mini",
    "resume_analysis": "gpt-4o-mini",
    "job_match": "gpt-4o-mini",
    "outreach": "gpt-4o-mini",
    "chat": "gpt-4o-mini",
}

# Tiers whose AI model list includes the advanced model
ADVANCED_MODEL = "gpt-4o"
ADVANCED_TIERS = {"premium", "elite"}


def get_model_for_feature(feature: str, tier: str = "free") -> str:
    """
    Get the model for a feature.

    Premium and elite users get the advanced model for roadmap generation.
    """
    model = MODEL_ROUTING.get(feature, config.OPENAI_MODEL)
    if tier in ADVANCED_TIERS and feature == "roadmap":
        return ADVANCED_MODEL
    return model
