"""Subscription product and bridge settings models.

Models from catalog.yaml configuration.
"""

from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from revcat_bridge.utils.billing_period import to_storefront_period, validate_billing_period


class PlanName(str, Enum):
    """Internal plan names the storefront knows subscription products by."""

    MONTHLY = "monthly"
    ANNUAL = "annual"


class ProductDefinition(BaseModel):
    """Subscription product sold through the storefront."""

    name: PlanName = Field(..., description="Internal plan name")
    product_id: int = Field(..., description="Storefront product ID")
    title: str = Field(..., description="Human-readable title")
    price: Decimal = Field(..., ge=0, description="Recurring price")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    billing_period: str = Field(..., description="ISO 8601 duration (e.g., P1M, P1Y)")

    @field_validator("billing_period")
    @classmethod
    def _check_billing_period(cls, value: str) -> str:
        if not validate_billing_period(value):
            raise ValueError(f"Unsupported billing period: {value!r}")
        return value.strip().upper()

    @property
    def storefront_period(self) -> Tuple[str, int]:
        """Billing period as the storefront stores it, e.g. ``("month", 1)``."""
        return to_storefront_period(self.billing_period)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "annual",
                "product_id": 102,
                "title": "Annual Membership",
                "price": "99.99",
                "currency": "USD",
                "billing_period": "P1Y",
            }
        }


class BridgeSettings(BaseModel):
    """Webhook bridge behaviour."""

    hook_name: str = Field(
        default="revenuecat_webhook",
        description="Action name the RevenueCat listener is registered under",
    )
    deduplicate_events: bool = Field(
        default=True,
        description="Skip events whose id was already processed",
    )
    event_retention_days: int = Field(
        default=7,
        ge=0,
        description="Days a processed event id is remembered (0 keeps ids forever)",
    )
    created_via: str = Field(
        default="revenuecat",
        description="Value stored in _created_via on bridge-created subscriptions",
    )

    @property
    def event_retention(self) -> Optional[timedelta]:
        """Retention window for processed event ids, None when unlimited."""
        return timedelta(days=self.event_retention_days) if self.event_retention_days else None


class CatalogConfig(BaseModel):
    """Complete catalog.yaml configuration."""

    catalog: list[ProductDefinition] = Field(..., min_length=1, description="Subscription products")
    bridge: BridgeSettings = Field(default_factory=BridgeSettings)

    @field_validator("catalog")
    @classmethod
    def _unique_names(cls, products: list[ProductDefinition]) -> list[ProductDefinition]:
        names = [p.name for p in products]
        if len(names) != len(set(names)):
            raise ValueError("Catalog plan names must be unique")
        return products
