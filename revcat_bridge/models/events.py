"""RevenueCat webhook event models.

Maps to the RevenueCat webhook schema (api_version 1.0).
@see https://www.revenuecat.com/docs/webhooks
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """RevenueCat event types the bridge handles."""

    INITIAL_PURCHASE = "INITIAL_PURCHASE"
    RENEWAL = "RENEWAL"
    CANCELLATION = "CANCELLATION"
    UNCANCELLATION = "UNCANCELLATION"
    BILLING_ISSUE = "BILLING_ISSUE"
    PRODUCT_CHANGE = "PRODUCT_CHANGE"
    SUBSCRIPTION_PAUSED = "SUBSCRIPTION_PAUSED"


class RevenueCatEvent(BaseModel):
    """A single RevenueCat event.

    Fields the bridge does not use are kept (``extra = "allow"``) so the full
    payload can be stored on the order it creates.
    """

    id: str = Field(..., description="Unique event identifier")
    type: str = Field(..., description="Event type, e.g. INITIAL_PURCHASE")
    app_user_id: Optional[str] = Field(None, description="Subscriber identifier (customer email)")
    product_id: Optional[str] = Field(None, description="Store product identifier (plan code)")
    purchased_at_ms: Optional[int] = Field(None, description="Purchase time (Unix millis)")
    expiration_at_ms: Optional[int] = Field(None, description="Expiration time (Unix millis)")

    class Config:
        extra = "allow"
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "CD489E0E-5D58-4F1C-8A6B-2B2A1B2C3D4E",
                "type": "INITIAL_PURCHASE",
                "app_user_id": "jane@example.com",
                "product_id": "com.client.clientmobile.monthlyplan",
                "purchased_at_ms": 1700000000000,
                "expiration_at_ms": 1702592000000,
            }
        }

    def to_payload(self) -> dict[str, Any]:
        """Full event payload as received, including extra fields."""
        return self.model_dump(mode="json", exclude_none=True)


class WebhookEnvelope(BaseModel):
    """Body RevenueCat POSTs to the webhook URL."""

    api_version: str = Field(default="1.0", description="Webhook schema version")
    event: dict[str, Any] = Field(..., description="Event payload")


class DispatchAction(str, Enum):
    """What the bridge did with an event."""

    CREATED = "created"
    UNCANCELLED = "uncancelled"
    CANCELLED = "cancelled"
    HELD = "held"
    RENEWED = "renewed"
    CHANGED = "changed"
    DUPLICATE = "duplicate"


class DispatchOutcome(BaseModel):
    """Result of routing one event to its handler."""

    event_id: str
    event_type: str
    action: DispatchAction
    order_id: Optional[int] = None
    subscription_id: Optional[int] = None

    @property
    def duplicate(self) -> bool:
        return self.action == DispatchAction.DUPLICATE
