"""Integration tests for complete subscription lifecycle scenarios.

Events go through the bridge the way the webhook endpoint delivers them:
fired on the hook registry and handled by the registered controller.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from revcat_bridge.bootstrap import Bridge
from revcat_bridge.config import Config
from revcat_bridge.errors import SubscriptionNotFoundError
from revcat_bridge.models import DispatchAction, OrderStatus, SubscriptionStatus

MONTHLY = "com.client.clientmobile.monthlyplan"
ANNUAL = "com.client.clientmobile.annualplan"

DAY_MS = 86_400_000
PURCHASED_MS = 1700000000000  # 2023-11-14 22:13:20 UTC


def utc_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis // 1000, tz=timezone.utc)


@pytest.fixture
def bridge():
    """Bridge with one registered customer."""
    bridge = Bridge(Config())
    bridge.storefront.add_customer("jane@example.com", login="jane")
    return bridge


@pytest.fixture
def deliver(bridge):
    """Deliver numbered events for jane@example.com."""
    counter = iter(range(1, 1000))

    def _deliver(event_type: str, **fields):
        event = {
            "id": f"evt-{next(counter)}",
            "type": event_type,
            "app_user_id": "jane@example.com",
            "product_id": MONTHLY,
            "purchased_at_ms": PURCHASED_MS,
            "expiration_at_ms": PURCHASED_MS + 30 * DAY_MS,
        }
        event.update(fields)
        return bridge.dispatch(event)

    return _deliver


class TestMonthlyLifecycle:
    """Purchase, renew, upgrade, cancel, uncancel."""

    def test_full_lifecycle(self, bridge, deliver):
        storefront = bridge.storefront

        # Purchase
        created = deliver("INITIAL_PURCHASE")
        subscription = storefront.get_subscription(created.subscription_id)
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.end_date == utc_millis(PURCHASED_MS + 30 * DAY_MS)
        assert storefront.get_order(created.order_id).status == OrderStatus.COMPLETED

        # Two renewals
        deliver("RENEWAL", expiration_at_ms=PURCHASED_MS + 60 * DAY_MS)
        deliver("RENEWAL", expiration_at_ms=PURCHASED_MS + 90 * DAY_MS)
        assert subscription.end_date == utc_millis(PURCHASED_MS + 90 * DAY_MS)
        assert subscription.start_date == utc_millis(PURCHASED_MS)

        # Upgrade to annual
        changed = deliver("PRODUCT_CHANGE", product_id=ANNUAL, expiration_at_ms=PURCHASED_MS + 455 * DAY_MS)
        assert changed.subscription_id == subscription.id
        assert [item.product_id for item in subscription.get_items()] == [102]
        assert subscription.total == Decimal("99.99")

        # Cancel
        cancelled = deliver("CANCELLATION")
        assert cancelled.action == DispatchAction.CANCELLED
        assert subscription.status == SubscriptionStatus.CANCELLED

        # Uncancel creates a fresh subscription and order
        uncancelled = deliver("UNCANCELLATION", product_id=ANNUAL)
        assert uncancelled.subscription_id != subscription.id
        assert uncancelled.order_id != created.order_id
        assert subscription.status == SubscriptionStatus.CANCELLED

        stats = storefront.get_statistics()
        assert stats["subscriptions"] == 2
        assert stats["orders"] == 2
        assert stats["active"] == 1
        assert stats["cancelled"] == 1
        assert bridge.ledger.count() == 6

    def test_provenance_stamps(self, bridge, deliver):
        created = deliver("INITIAL_PURCHASE")
        deliver("RENEWAL", expiration_at_ms=PURCHASED_MS + 60 * DAY_MS)
        deliver("PRODUCT_CHANGE", product_id=ANNUAL)
        deliver("BILLING_ISSUE")

        meta = bridge.storefront.get_subscription(created.subscription_id).meta
        assert meta["renewed_with_rc_id"] == "evt-2"
        assert meta["updated_with_rc_id"] == "evt-3"
        assert meta["held_with_rc_id"] == "evt-4"
        assert "cancelled_with_rc_id" not in meta


class TestBillingTrouble:
    """Billing issues and pauses."""

    def test_held_subscription_is_out_of_reach(self, bridge, deliver):
        created = deliver("INITIAL_PURCHASE")
        deliver("BILLING_ISSUE")

        subscription = bridge.storefront.get_subscription(created.subscription_id)
        assert subscription.status == SubscriptionStatus.ON_HOLD

        for event_type in ("RENEWAL", "CANCELLATION", "SUBSCRIPTION_PAUSED", "PRODUCT_CHANGE"):
            with pytest.raises(SubscriptionNotFoundError):
                deliver(event_type)
        assert subscription.status == SubscriptionStatus.ON_HOLD

    def test_repurchase_after_pause(self, bridge, deliver):
        first = deliver("INITIAL_PURCHASE")
        deliver("SUBSCRIPTION_PAUSED")
        second = deliver(
            "INITIAL_PURCHASE",
            purchased_at_ms=PURCHASED_MS + 40 * DAY_MS,
            expiration_at_ms=PURCHASED_MS + 70 * DAY_MS,
        )

        renewed = deliver("RENEWAL", expiration_at_ms=PURCHASED_MS + 100 * DAY_MS)
        assert renewed.subscription_id == second.subscription_id
        assert bridge.storefront.get_subscription(first.subscription_id).status == SubscriptionStatus.ON_HOLD


class TestRedelivery:
    """RevenueCat may deliver an event more than once."""

    def test_replayed_sequence_is_idempotent(self, bridge):
        events = [
            {
                "id": "evt-purchase",
                "type": "INITIAL_PURCHASE",
                "app_user_id": "jane@example.com",
                "product_id": MONTHLY,
                "purchased_at_ms": PURCHASED_MS,
                "expiration_at_ms": PURCHASED_MS + 30 * DAY_MS,
            },
            {
                "id": "evt-renewal",
                "type": "RENEWAL",
                "app_user_id": "jane@example.com",
                "expiration_at_ms": PURCHASED_MS + 60 * DAY_MS,
            },
        ]

        first_pass = [bridge.dispatch(event) for event in events]
        second_pass = [bridge.dispatch(event) for event in events]

        assert [o.action for o in first_pass] == [DispatchAction.CREATED, DispatchAction.RENEWED]
        assert all(o.duplicate for o in second_pass)
        assert bridge.storefront.count_subscriptions() == 1
        assert bridge.storefront.count_orders() == 1
