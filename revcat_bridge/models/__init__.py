"""Pydantic models for webhook events, storefront entities and API payloads."""

# Catalog configuration models
from .product import (
    PlanName,
    ProductDefinition,
    BridgeSettings,
    CatalogConfig,
)

# RevenueCat event models
from .events import (
    EventType,
    RevenueCatEvent,
    WebhookEnvelope,
    DispatchAction,
    DispatchOutcome,
)

# Storefront models
from .storefront import (
    StorefrontError,
    SubscriptionStatus,
    OrderStatus,
    Customer,
    LineItem,
    OrderNote,
    Order,
    Subscription,
)

# API models
from .api_request import CreateCustomerRequest
from .api_response import (
    WebhookAck,
    ResetResponse,
    ErrorResponse,
)

__all__ = [
    # Catalog
    "PlanName",
    "ProductDefinition",
    "BridgeSettings",
    "CatalogConfig",
    # Events
    "EventType",
    "RevenueCatEvent",
    "WebhookEnvelope",
    "DispatchAction",
    "DispatchOutcome",
    # Storefront
    "StorefrontError",
    "SubscriptionStatus",
    "OrderStatus",
    "Customer",
    "LineItem",
    "OrderNote",
    "Order",
    "Subscription",
    # API
    "CreateCustomerRequest",
    "WebhookAck",
    "ResetResponse",
    "ErrorResponse",
]
