"""
Pydantic schemas for subscription and payment endpoints.
"""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class CreateCheckoutRequest(BaseModel):
    """Request schema for POST /api/payments/create-checkout."""
    tier: Literal["basic", "premium", "elite"]
    provider: Literal["stripe", "razorpay"] = "stripe"
    billing: Literal["monthly", "quarterly", "annual"] = "monthly"

    class Config:
        json_schema_extra = {
            "example": {
                "tier": "premium",
                "provider": "stripe",
                "billing": "monthly"
            }
        }


class CreateCheckoutResponse(BaseModel):
    provider: str
    sessionId: str = Field(..., description="Stripe checkout session ID")
    url: Optional[str] = Field(None, description="Stripe checkout session URL")


class SubscriptionActionRequest(BaseModel):
    """Request schema for PUT /api/subscription."""
    action: Optional[str] = Field(None, description="cancel, reactivate or upgrade")
    tier: Optional[str] = Field(None, description="Target tier for upgrade")
    reason: Optional[str] = None
