"""
Subscription tier definitions.

Single source of truth for tier pricing, daily limits and feature access.
A limit of -1 means unlimited.
"""
from typing import Dict, List, Any

UNLIMITED = -1

TIER_ORDER: List[str] = ["free", "basic", "premium", "elite"]

BILLING_PERIODS: List[str] = ["monthly", "quarterly", "annual"]

# Metric names as stored in usage_metrics
CHAT_MESSAGES = "chat_messages"
ROADMAPS_CREATED = "roadmaps_created"
AI_CALLS = "ai_calls"

AI_CALLS_DAILY_LIMIT = 1000

SUBSCRIPTION_TIERS: Dict[str, Dict[str, Any]] = {
    "free": {
        "name": "Free",
        "price": {"monthly": 0, "quarterly": 0},
        "features": [
            "Basic career quiz",
            "Limited college search",
            "10 chat messages per day",
            "Community support",
        ],
        "limits": {CHAT_MESSAGES: 10, ROADMAPS_CREATED: 0},
        "ai_models": ["basic"],
        "support": "community",
    },
    "basic": {
        "name": "Basic",
        "price": {"monthly": 9.99, "quarterly": 24.99},
        "features": [
            "Full career assessment",
            "Complete college database",
            "100 chat messages per day",
            "1 career roadmap",
            "Email support",
        ],
        "limits": {CHAT_MESSAGES: 100, ROADMAPS_CREATED: 1},
        "ai_models": ["basic", "standard"],
        "support": "email",
    },
    "premium": {
        "name": "Premium",
        "price": {"monthly": 19.99, "quarterly": 49.99},
        "features": [
            "Everything in Basic",
            "500 chat messages per day",
            "Unlimited career roadmaps",
            "Unlimited chatbot access",
            "Priority support",
        ],
        "limits": {CHAT_MESSAGES: 500, ROADMAPS_CREATED: UNLIMITED},
        "ai_models": ["basic", "standard", "advanced"],
        "support": "priority",
    },
    "elite": {
        "name": "Elite",
        "price": {"monthly": 39.99, "quarterly": 99.99},
        "features": [
            "Everything in Premium",
            "Unlimited chat messages",
            "Access to GPT-5, Gemini Pro and Brock AI",
            "Advanced analytics",
            "API access",
            "24/7 support",
        ],
        "limits": {CHAT_MESSAGES: UNLIMITED, ROADMAPS_CREATED: UNLIMITED},
        "ai_models": ["basic", "standard", "advanced", "chatgpt-5", "gemini-pro", "brock-ai"],
        "support": "24x7",
    },
}

# Feature key -> tiers allowed to use it
FEATURE_ACCESS: Dict[str, List[str]] = {
    "chatbot-basic": ["free", "basic", "premium", "elite"],
    "chatbot-unlimited": ["premium", "elite"],
    "roadmap-generator": ["premium", "elite"],
    "chatgpt-5": ["elite"],
    "gemini-pro": ["elite"],
    "brock-ai": ["elite"],
    "advanced-analytics": ["elite"],
    "priority-support": ["premium", "elite"],
    "24x7-support": ["elite"],
    "api-access": ["elite"],
}

# Metered action -> metric it is checked against
ACTION_METRICS: Dict[str, str] = {
    "chat_message": CHAT_MESSAGES,
    "roadmap_creation": ROADMAPS_CREATED,
}


def normalize_tier(tier: str) -> str:
    """Lowercase a tier name, mapping anything unknown to free."""
    tier = (tier or "free").lower()
    return tier if tier in SUBSCRIPTION_TIERS else "free"


def get_tier(tier: str) -> Dict[str, Any]:
    """Get the descriptor for a tier (free for unknown names)."""
    return SUBSCRIPTION_TIERS[normalize_tier(tier)]


def get_tier_limit(tier: str, metric: str) -> int:
    """
    Get the daily limit for a metric in a tier.

    Returns:
        Limit as int, -1 for unlimited, 0 when the tier has no allowance
    """
    if metric == AI_CALLS:
        return AI_CALLS_DAILY_LIMIT
    return get_tier(tier)["limits"].get(metric, 0)


def is_unlimited(limit: int) -> bool:
    return limit == UNLIMITED


def get_tier_price(tier: str, billing: str) -> float:
    """
    Price for a tier and billing period.

    Annual billing is four quarterly payments.
    """
    prices = get_tier(tier)["price"]
    if billing == "annual":
        return round(prices["quarterly"] * 4, 2)
    return prices.get(billing, prices["monthly"])


def allowed_tiers_for(feature: str) -> List[str]:
    return FEATURE_ACCESS.get(feature, [])
