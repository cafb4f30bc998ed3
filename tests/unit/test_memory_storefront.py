"""Tests for the in-memory storefront."""

from decimal import Decimal

import pytest

from revcat_bridge.models import PlanName, ProductDefinition, StorefrontError, SubscriptionStatus
from revcat_bridge.repositories.memory_storefront import InMemoryStorefront
from revcat_bridge.repositories.storefront import (
    ALL_CAPABILITIES,
    CAPABILITY_ORDERS,
    CAPABILITY_SUBSCRIPTIONS,
)


@pytest.fixture
def storefront():
    return InMemoryStorefront()


@pytest.fixture
def customer(storefront):
    return storefront.add_customer("Jane@Example.com", login="jane")


@pytest.fixture
def monthly_product():
    return ProductDefinition(
        name=PlanName.MONTHLY,
        product_id=101,
        title="Monthly Membership",
        price=Decimal("9.99"),
        billing_period="P1M",
    )


def _subscribe(storefront, customer_id, status=SubscriptionStatus.ACTIVE):
    order = storefront.create_order(customer_id)
    return storefront.create_subscription(order.id, status, "month", 1)


class TestCapabilities:
    """Test capability reporting."""

    def test_all_supported_by_default(self, storefront):
        assert all(storefront.supports(c) for c in ALL_CAPABILITIES)

    def test_disabled_at_construction(self):
        storefront = InMemoryStorefront(disabled_capabilities=[CAPABILITY_ORDERS])
        assert not storefront.supports(CAPABILITY_ORDERS)
        assert storefront.supports(CAPABILITY_SUBSCRIPTIONS)

    def test_disable(self, storefront):
        storefront.disable(CAPABILITY_SUBSCRIPTIONS)
        assert not storefront.supports(CAPABILITY_SUBSCRIPTIONS)


class TestCustomers:
    """Test customer registration and lookup."""

    def test_login_defaults_to_email(self, storefront):
        assert storefront.add_customer("bob@example.com").login == "bob@example.com"

    def test_duplicate_email_rejected(self, storefront, customer):
        with pytest.raises(ValueError, match="email"):
            storefront.add_customer("jane@example.com", login="other")

    def test_duplicate_login_rejected(self, storefront, customer):
        with pytest.raises(ValueError, match="login"):
            storefront.add_customer("other@example.com", login="jane")

    def test_lookup_email_case_insensitive(self, storefront, customer):
        assert storefront.get_user_by("email", "jane@example.COM").id == customer.id

    def test_lookup_by_login_and_id(self, storefront, customer):
        assert storefront.get_user_by("login", "jane").id == customer.id
        assert storefront.get_user_by("id", str(customer.id)).id == customer.id

    def test_lookup_empty_value(self, storefront, customer):
        assert storefront.get_user_by("email", "") is None

    def test_lookup_unsupported_field(self, storefront):
        with pytest.raises(ValueError):
            storefront.get_user_by("phone", "555")


class TestOrdersAndSubscriptions:
    """Test order and subscription records."""

    def test_order_for_unknown_customer(self, storefront):
        with pytest.raises(StorefrontError):
            storefront.create_order(99)

    def test_orders_and_subscriptions_share_ids(self, storefront, customer):
        subscription = _subscribe(storefront, customer.id)

        assert subscription.parent_id == 1
        assert subscription.id == 2
        assert storefront.get_order(subscription.id) is None
        assert storefront.get_subscription(subscription.parent_id) is None

    def test_subscription_copies_customer(self, storefront, customer):
        subscription = _subscribe(storefront, customer.id)
        assert subscription.customer_id == customer.id
        assert subscription.customer_email == "Jane@Example.com"

    @pytest.mark.parametrize("period,interval", [("fortnight", 1), ("month", 0)])
    def test_invalid_schedule(self, storefront, customer, period, interval):
        order = storefront.create_order(customer.id)
        with pytest.raises(StorefrontError):
            storefront.create_subscription(order.id, SubscriptionStatus.PENDING, period, interval)

    def test_subscription_needs_order(self, storefront):
        with pytest.raises(StorefrontError):
            storefront.create_subscription(42, SubscriptionStatus.PENDING, "month", 1)

    def test_delete_order(self, storefront, customer):
        order = storefront.create_order(customer.id)
        assert storefront.delete_order(order.id)
        assert not storefront.delete_order(order.id)
        assert storefront.count_orders() == 0

    def test_get_subscriptions_filters(self, storefront, customer):
        other = storefront.add_customer("bob@example.com")
        first = _subscribe(storefront, customer.id)
        held = _subscribe(storefront, customer.id, SubscriptionStatus.ON_HOLD)
        _subscribe(storefront, other.id)

        assert [s.id for s in storefront.get_subscriptions(customer_email="jane@example.com")] == [
            first.id,
            held.id,
        ]
        active = storefront.get_subscriptions(customer_email="JANE@example.com", status="active")
        assert [s.id for s in active] == [first.id]
        assert len(storefront.get_subscriptions()) == 3


class TestItemsAndMeta:
    """Test line item deletion and post meta."""

    def test_item_ids_are_storefront_wide(self, storefront, customer, monthly_product):
        first = _subscribe(storefront, customer.id).add_product(monthly_product)
        second = _subscribe(storefront, customer.id).add_product(monthly_product)
        assert second.id == first.id + 1

    def test_delete_order_item(self, storefront, customer, monthly_product):
        subscription = _subscribe(storefront, customer.id)
        item = subscription.add_product(monthly_product)

        assert storefront.delete_order_item(item.id)
        assert subscription.get_items() == []
        assert not storefront.delete_order_item(item.id)

    def test_post_meta(self, storefront, customer):
        order = storefront.create_order(customer.id)
        storefront.update_post_meta(order.id, "created_with_rc_id", "evt-1")

        assert storefront.get_post_meta(order.id, "created_with_rc_id") == "evt-1"
        assert storefront.get_post_meta(order.id, "missing") is None
        assert storefront.get_post_meta(999, "created_with_rc_id", "none") == "none"

    def test_meta_on_missing_post(self, storefront):
        with pytest.raises(StorefrontError):
            storefront.update_post_meta(999, "key", "value")


class TestHousekeeping:
    """Test statistics and clearing."""

    def test_statistics(self, storefront, customer):
        _subscribe(storefront, customer.id)
        _subscribe(storefront, customer.id, SubscriptionStatus.ON_HOLD)

        stats = storefront.get_statistics()
        assert stats["customers"] == 1
        assert stats["orders"] == 2
        assert stats["subscriptions"] == 2
        assert stats["active"] == 1
        assert stats["on-hold"] == 1
        assert stats["cancelled"] == 0

    def test_clear_restarts_sequences(self, storefront, customer):
        _subscribe(storefront, customer.id)
        storefront.clear()

        assert storefront.count_customers() == 0
        assert storefront.count_subscriptions() == 0
        fresh = storefront.add_customer("jane@example.com")
        assert fresh.id == 1
        assert storefront.create_order(fresh.id).id == 1

    def test_repr(self, storefront, customer):
        assert repr(storefront) == "InMemoryStorefront(customers=1, orders=0, subscriptions=0)"
