"""API response models for the webhook and control endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


class WebhookAck(BaseModel):
    """Response returned to RevenueCat after a delivery was handled."""

    received: bool = Field(default=True, description="Delivery accepted")
    duplicate: bool = Field(default=False, description="Event id was already processed")
    action: Optional[str] = Field(None, description="What the bridge did with the event")
    event_id: Optional[str] = Field(None, description="RevenueCat event id")
    event_type: Optional[str] = Field(None, description="RevenueCat event type")
    order_id: Optional[int] = Field(None, description="Order created by the event")
    subscription_id: Optional[int] = Field(None, description="Subscription the event touched")

    class Config:
        json_schema_extra = {
            "example": {
                "received": True,
                "duplicate": False,
                "action": "created",
                "event_id": "CD489E0E-5D58-4F1C-8A6B-2B2A1B2C3D4E",
                "event_type": "INITIAL_PURCHASE",
                "order_id": 1,
                "subscription_id": 2,
            }
        }


class ResetResponse(BaseModel):
    """Response after clearing storefront and ledger state."""

    subscriptions_cleared: int
    orders_cleared: int
    customers_cleared: int
    events_cleared: int
    message: str


class ErrorResponse(BaseModel):
    """Error body returned for rejected requests."""

    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable description")

    class Config:
        json_schema_extra = {
            "example": {
                "error": "subscription_not_found",
                "message": "Referenced subscription not found",
            }
        }
