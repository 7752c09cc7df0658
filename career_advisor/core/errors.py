"""
Application exception hierarchy.

Each error carries the HTTP status it maps to and renders its own JSON body,
so route handlers raise and the handlers registered in main.py respond.
"""
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base exception for all Career Advisor errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        body: Dict[str, Any] = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(AppError):
    """Raised when required input is missing or invalid."""

    status_code = 400


class AuthenticationRequired(AppError):
    """Raised when a route needs a session and none was supplied."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", code: Optional[str] = None):
        super().__init__(message)
        self.code = code

    def to_dict(self) -> Dict[str, Any]:
        if self.code:
            return {"error": self.message, "code": self.code}
        return {"error": self.message, "success": False}


class TierRequired(AppError):
    """Raised when the user's tier does not include a feature."""

    status_code = 403

    def __init__(self, message: str, current_tier: str, upgrade_url: str = "/pricing"):
        super().__init__(message)
        self.current_tier = current_tier
        self.upgrade_url = upgrade_url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": "TIER_REQUIRED",
            "currentTier": self.current_tier,
            "upgradeUrl": self.upgrade_url,
        }


class NotFound(AppError):
    """Raised when a requested resource does not exist."""

    status_code = 404


class UsageLimitExceeded(AppError):
    """Raised when a metered action is over the tier's daily limit."""

    status_code = 429

    def __init__(self, message: str, current_tier: str, upgrade_url: str = "/pricing"):
        super().__init__(message)
        self.current_tier = current_tier
        self.upgrade_url = upgrade_url

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": "USAGE_LIMIT_EXCEEDED",
            "currentTier": self.current_tier,
            "upgradeUrl": self.upgrade_url,
        }


class UpstreamError(AppError):
    """Raised when a payment or AI provider is unavailable."""

    status_code = 503


class AIGenerationError(AppError):
    """Raised when AI generation fails and the endpoint has no fallback."""

    status_code = 500


class ConfigurationError(AppError):
    """Raised when required environment configuration is missing."""

    status_code = 500

    def to_dict(self) -> Dict[str, Any]:
        return {"error": "Server configuration error", "details": self.message}
