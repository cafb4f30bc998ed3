"""Storefront interface - the API surface the bridge drives.

The storefront owns all customer, order and subscription state. The bridge only
looks records up, asks the storefront to create them, mutates them through the
entity methods and saves provenance meta.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from revcat_bridge.models.storefront import (
    Customer,
    Order,
    StorefrontError,
    Subscription,
    SubscriptionStatus,
)

# Capabilities a storefront installation may or may not provide
CAPABILITY_ORDERS = "create_order"
CAPABILITY_SUBSCRIPTIONS = "create_subscription"
CAPABILITY_SUBSCRIPTION_PRODUCTS = "subscription_products"

ALL_CAPABILITIES = frozenset(
    {CAPABILITY_ORDERS, CAPABILITY_SUBSCRIPTIONS, CAPABILITY_SUBSCRIPTION_PRODUCTS}
)

__all__ = [
    "ALL_CAPABILITIES",
    "CAPABILITY_ORDERS",
    "CAPABILITY_SUBSCRIPTIONS",
    "CAPABILITY_SUBSCRIPTION_PRODUCTS",
    "Storefront",
    "StorefrontError",
]


class Storefront(ABC):
    """Abstract storefront (WooCommerce with WooCommerce Subscriptions)."""

    @abstractmethod
    def supports(self, capability: str) -> bool:
        """Whether the installation provides ``capability``."""

    @abstractmethod
    def next_item_id(self) -> int:
        """Allocate an order item id."""

    @abstractmethod
    def get_user_by(self, field: str, value: str) -> Optional[Customer]:
        """Find a customer by ``id``, ``email`` or ``login``."""

    @abstractmethod
    def create_order(self, customer_id: int) -> Order:
        """Create a pending order for the customer.

        Raises:
            StorefrontError: If the customer does not exist
        """

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[Order]:
        """Get an order by id."""

    @abstractmethod
    def delete_order(self, order_id: int) -> bool:
        """Delete an order. Returns False if it did not exist."""

    @abstractmethod
    def create_subscription(
        self,
        order_id: int,
        status: SubscriptionStatus,
        billing_period: str,
        billing_interval: int,
    ) -> Subscription:
        """Create a subscription as a child of ``order_id``.

        Raises:
            StorefrontError: If the order does not exist or the billing schedule is invalid
        """

    @abstractmethod
    def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        """Get a subscription by id."""

    @abstractmethod
    def get_subscriptions(
        self,
        customer_email: Optional[str] = None,
        status: Optional[SubscriptionStatus] = None,
    ) -> List[Subscription]:
        """Query subscriptions, ordered by id ascending."""

    @abstractmethod
    def delete_order_item(self, item_id: int) -> bool:
        """Delete a line item from whichever order or subscription holds it."""

    @abstractmethod
    def update_post_meta(self, post_id: int, key: str, value: Any) -> None:
        """Set a meta value on an order or subscription.

        Raises:
            StorefrontError: If no record has ``post_id``
        """

    @abstractmethod
    def get_post_meta(self, post_id: int, key: str, default: Any = None) -> Any:
        """Read a meta value from an order or subscription."""
