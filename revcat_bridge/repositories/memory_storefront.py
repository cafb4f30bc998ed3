"""In-memory storefront for local runs and tests.

Holds customers, orders and subscriptions in process memory behind a single
re-entrant lock. Orders and subscriptions share one id sequence, like posts in
the real storefront.
"""

import itertools
import threading
from typing import Any, Dict, Iterable, List, Optional, Union

from revcat_bridge.logging_config import get_logger
from revcat_bridge.models.storefront import (
    Customer,
    Order,
    StorefrontError,
    Subscription,
    SubscriptionStatus,
)
from revcat_bridge.repositories.storefront import ALL_CAPABILITIES, Storefront
from revcat_bridge.utils.billing_period import STOREFRONT_PERIODS

logger = get_logger(__name__)

Record = Union[Order, Subscription]

_VALID_PERIODS = frozenset(STOREFRONT_PERIODS.values())


class InMemoryStorefront(Storefront):
    """Thread-safe in-memory implementation of the storefront API."""

    def __init__(self, disabled_capabilities: Iterable[str] = ()):
        """Initialize an empty storefront.

        Args:
            disabled_capabilities: Capabilities to report as missing
        """
        self._lock = threading.RLock()
        self._customers: Dict[int, Customer] = {}
        self._records: Dict[int, Record] = {}
        self._capabilities = set(ALL_CAPABILITIES) - set(disabled_capabilities)
        self._reset_sequences()

    def _reset_sequences(self) -> None:
        self._customer_ids = itertools.count(1)
        self._post_ids = itertools.count(1)
        self._item_ids = itertools.count(1)

    # Capabilities

    def supports(self, capability: str) -> bool:
        return capability in self._capabilities

    def disable(self, capability: str) -> None:
        """Report ``capability`` as missing from now on."""
        self._capabilities.discard(capability)

    def next_item_id(self) -> int:
        with self._lock:
            return next(self._item_ids)

    # Customers

    def add_customer(
        self, email: str, login: Optional[str] = None, display_name: Optional[str] = None
    ) -> Customer:
        """Register a customer.

        Raises:
            ValueError: If the email or login is already taken
        """
        login = login or email
        with self._lock:
            for existing in self._customers.values():
                if existing.email.casefold() == email.casefold():
                    raise ValueError(f"Customer with email '{email}' already exists")
                if existing.login == login:
                    raise ValueError(f"Customer with login '{login}' already exists")

            customer = Customer(
                id=next(self._customer_ids),
                email=email,
                login=login,
                display_name=display_name,
            )
            self._customers[customer.id] = customer

        logger.info("customer_added", customer_id=customer.id)
        return customer

    def get_user_by(self, field: str, value: str) -> Optional[Customer]:
        if not value:
            return None

        with self._lock:
            if field == "id":
                return self._customers.get(int(value))
            if field == "email":
                wanted = value.casefold()
                return next(
                    (c for c in self._customers.values() if c.email.casefold() == wanted),
                    None,
                )
            if field == "login":
                return next((c for c in self._customers.values() if c.login == value), None)

        raise ValueError(f"Unsupported user field: {field}")

    # Orders

    def create_order(self, customer_id: int) -> Order:
        with self._lock:
            customer = self._customers.get(customer_id)
            if customer is None:
                raise StorefrontError(f"Invalid customer ID: {customer_id}")

            order = Order(
                id=next(self._post_ids),
                customer_id=customer.id,
                customer_email=customer.email,
            )
            order.attach(self)
            self._records[order.id] = order

        logger.info("order_created", order_id=order.id, customer_id=customer_id)
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        with self._lock:
            record = self._records.get(order_id)
            return record if isinstance(record, Order) else None

    def delete_order(self, order_id: int) -> bool:
        with self._lock:
            if not isinstance(self._records.get(order_id), Order):
                return False
            del self._records[order_id]

        logger.info("order_deleted", order_id=order_id)
        return True

    def get_orders(self) -> List[Order]:
        with self._lock:
            return [r for r in self._records.values() if isinstance(r, Order)]

    # Subscriptions

    def create_subscription(
        self,
        order_id: int,
        status: SubscriptionStatus,
        billing_period: str,
        billing_interval: int,
    ) -> Subscription:
        if billing_period not in _VALID_PERIODS:
            raise StorefrontError(f"Invalid subscription billing period given: {billing_period}")
        if billing_interval < 1:
            raise StorefrontError(f"Invalid subscription billing interval given: {billing_interval}")

        with self._lock:
            order = self.get_order(order_id)
            if order is None:
                raise StorefrontError(f"Invalid parent order ID: {order_id}")

            subscription = Subscription(
                id=next(self._post_ids),
                parent_id=order.id,
                customer_id=order.customer_id,
                customer_email=order.customer_email,
                status=SubscriptionStatus(status),
                billing_period=billing_period,
                billing_interval=billing_interval,
            )
            subscription.attach(self)
            self._records[subscription.id] = subscription

        logger.info(
            "subscription_record_created",
            subscription_id=subscription.id,
            order_id=order_id,
            billing_period=billing_period,
            billing_interval=billing_interval,
        )
        return subscription

    def get_subscription(self, subscription_id: int) -> Optional[Subscription]:
        with self._lock:
            record = self._records.get(subscription_id)
            return record if isinstance(record, Subscription) else None

    def get_subscriptions(
        self,
        customer_email: Optional[str] = None,
        status: Optional[SubscriptionStatus] = None,
    ) -> List[Subscription]:
        with self._lock:
            subscriptions = [r for r in self._records.values() if isinstance(r, Subscription)]

        if customer_email is not None:
            wanted = customer_email.casefold()
            subscriptions = [s for s in subscriptions if s.customer_email.casefold() == wanted]
        if status is not None:
            status = SubscriptionStatus(status)
            subscriptions = [s for s in subscriptions if s.status == status]

        return sorted(subscriptions, key=lambda s: s.id)

    # Line items and meta

    def delete_order_item(self, item_id: int) -> bool:
        with self._lock:
            for record in self._records.values():
                if record.remove_item(item_id):
                    return True
        return False

    def _get_record(self, post_id: int) -> Record:
        record = self._records.get(post_id)
        if record is None:
            raise StorefrontError(f"No order or subscription with ID {post_id}")
        return record

    def update_post_meta(self, post_id: int, key: str, value: Any) -> None:
        with self._lock:
            self._get_record(post_id).update_meta_data(key, value)

    def get_post_meta(self, post_id: int, key: str, default: Any = None) -> Any:
        with self._lock:
            record = self._records.get(post_id)
            if record is None:
                return default
            return record.get_meta(key, default)

    # Housekeeping

    def count_orders(self) -> int:
        return len(self.get_orders())

    def count_subscriptions(self) -> int:
        with self._lock:
            return sum(1 for r in self._records.values() if isinstance(r, Subscription))

    def count_customers(self) -> int:
        with self._lock:
            return len(self._customers)

    def clear(self) -> None:
        """Remove all customers, orders and subscriptions and restart id sequences."""
        with self._lock:
            self._customers.clear()
            self._records.clear()
            self._reset_sequences()

    def get_statistics(self) -> Dict[str, int]:
        """Get storefront statistics.

        Returns:
            Dictionary with customer, order and per-status subscription counts
        """
        with self._lock:
            subscriptions = [r for r in self._records.values() if isinstance(r, Subscription)]
            stats = {
                "customers": len(self._customers),
                "orders": sum(1 for r in self._records.values() if isinstance(r, Order)),
                "subscriptions": len(subscriptions),
            }
            for status in SubscriptionStatus:
                stats[status.value] = sum(1 for s in subscriptions if s.status == status)
            return stats

    def __repr__(self) -> str:
        return (
            f"InMemoryStorefront(customers={self.count_customers()}, "
            f"orders={self.count_orders()}, subscriptions={self.count_subscriptions()})"
        )
