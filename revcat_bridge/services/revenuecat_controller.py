"""RevenueCat webhook controller.

Responsibilities:
- Route each RevenueCat event to exactly one handler by its type
- Resolve customers, subscription products and active subscriptions
- Apply the event to the storefront (create, cancel, hold, renew, change, uncancel)
- Tag touched orders/subscriptions with the event that touched them
- Skip events that were already applied
"""

from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from revcat_bridge.errors import (
    IntegrationError,
    InvalidEventError,
    ProductNotFoundError,
    SubscriptionNotFoundError,
    UnknownEventTypeError,
    UserNotFoundError,
)
from revcat_bridge.logging_config import bind_context, get_logger, unbind_context
from revcat_bridge.models import (
    BridgeSettings,
    Customer,
    DispatchAction,
    DispatchOutcome,
    EventType,
    OrderStatus,
    PlanName,
    ProductDefinition,
    RevenueCatEvent,
    StorefrontError,
    Subscription,
    SubscriptionStatus,
)
from revcat_bridge.repositories.event_ledger import EventLedger
from revcat_bridge.repositories.product_repository import ProductRepository
from revcat_bridge.repositories.storefront import (
    CAPABILITY_ORDERS,
    CAPABILITY_SUBSCRIPTION_PRODUCTS,
    CAPABILITY_SUBSCRIPTIONS,
    Storefront,
)
from revcat_bridge.state_logger import log_line_items_replaced, log_provenance_stamp
from revcat_bridge.utils.dates import millis_to_datetime
from revcat_bridge.utils.sanitize import sanitize_email

logger = get_logger(__name__)

Handler = Callable[[RevenueCatEvent], Subscription]


class RevenueCatController:
    """Applies RevenueCat subscription events to the storefront."""

    # Product IDs.
    MONTHLY_PRODUCT_ID = "com.client.clientmobile.monthlyplan"
    ANNUAL_PRODUCT_ID = "com.client.clientmobile.annualplan"

    # Meta.
    CREATED_WITH_RC_EVT_PAYLOAD = "created_with_rc_event"
    CREATED_WITH_RC_EVT_ID = "created_with_rc_id"
    CANCELLED_WITH_RC_EVT_ID = "cancelled_with_rc_id"
    HELD_WITH_RC_EVT_ID = "held_with_rc_id"
    RENEWED_WITH_RC_EVT_ID = "renewed_with_rc_id"
    UPDATED_WITH_RC_EVT_ID = "updated_with_rc_id"

    CREATED_VIA_META = "_created_via"

    REQUIRED_CAPABILITIES = (
        CAPABILITY_ORDERS,
        CAPABILITY_SUBSCRIPTIONS,
        CAPABILITY_SUBSCRIPTION_PRODUCTS,
    )

    PLAN_CODES = {
        MONTHLY_PRODUCT_ID: PlanName.MONTHLY,
        ANNUAL_PRODUCT_ID: PlanName.ANNUAL,
    }

    def __init__(
        self,
        storefront: Storefront,
        product_repository: ProductRepository,
        event_ledger: Optional[EventLedger] = None,
        settings: Optional[BridgeSettings] = None,
    ):
        """Initialize the controller.

        Args:
            storefront: Storefront to mirror subscriptions into
            product_repository: Subscription product catalog
            event_ledger: Processed event ids; de-duplication is off without one
            settings: Bridge settings (defaults apply when omitted)
        """
        self.storefront = storefront
        self.product_repo = product_repository
        self.ledger = event_ledger
        self.settings = settings or BridgeSettings()

        self._routes: Dict[EventType, tuple[Handler, DispatchAction]] = {
            EventType.INITIAL_PURCHASE: (self.create_subscription, DispatchAction.CREATED),
            EventType.CANCELLATION: (self.cancel_subscription, DispatchAction.CANCELLED),
            EventType.RENEWAL: (self.renew_subscription, DispatchAction.RENEWED),
            EventType.PRODUCT_CHANGE: (self.change_subscription, DispatchAction.CHANGED),
            EventType.BILLING_ISSUE: (self.hold_subscription, DispatchAction.HELD),
            EventType.SUBSCRIPTION_PAUSED: (self.hold_subscription, DispatchAction.HELD),
            EventType.UNCANCELLATION: (self.uncancel_subscription, DispatchAction.UNCANCELLED),
        }

    def receive_webhook(self, event: Union[Mapping[str, Any], RevenueCatEvent]) -> DispatchOutcome:
        """Receive a webhook event and update the matching subscription.

        Args:
            event: RevenueCat event (the ``event`` object of the webhook body)

        Returns:
            DispatchOutcome describing what was done

        Raises:
            IntegrationError: Storefront lacks order/subscription support
            UnknownEventTypeError: No handler for the event type
            InvalidEventError: Payload is missing required data
            UserNotFoundError / ProductNotFoundError / SubscriptionNotFoundError
        """
        self._check_storefront()
        event = self._coerce_event(event)

        try:
            event_type = EventType(event.type)
        except ValueError:
            logger.warning("unknown_event_type", event_type=event.type, event_id=event.id)
            raise UnknownEventTypeError(event.type) from None

        bind_context(event_id=event.id, event_type=event_type.value, app_user_id=event.app_user_id)
        try:
            if self._is_duplicate(event):
                logger.info("duplicate_event_skipped")
                return DispatchOutcome(
                    event_id=event.id,
                    event_type=event_type.value,
                    action=DispatchAction.DUPLICATE,
                )

            handler, action = self._routes[event_type]
            logger.info("webhook_dispatching", handler=handler.__name__)
            subscription = handler(event)

            if self.ledger is not None:
                self.ledger.mark_processed(event.id, event_type.value, subscription.id)

            outcome = DispatchOutcome(
                event_id=event.id,
                event_type=event_type.value,
                action=action,
                order_id=subscription.parent_id,
                subscription_id=subscription.id,
            )
            logger.info(
                "webhook_applied",
                action=action.value,
                order_id=outcome.order_id,
                subscription_id=outcome.subscription_id,
            )
            return outcome
        finally:
            unbind_context("event_id", "event_type", "app_user_id")

    def _check_storefront(self) -> None:
        missing = [c for c in self.REQUIRED_CAPABILITIES if not self.storefront.supports(c)]
        if missing:
            logger.error("storefront_capabilities_missing", missing=missing)
            raise IntegrationError("WooCommerce or WooCommerce Subscriptions not installed")

    @staticmethod
    def _coerce_event(event: Union[Mapping[str, Any], RevenueCatEvent]) -> RevenueCatEvent:
        if isinstance(event, RevenueCatEvent):
            return event
        try:
            return RevenueCatEvent.model_validate(dict(event))
        except (ValidationError, TypeError, ValueError) as e:
            raise InvalidEventError(f"Invalid RevenueCat event: {e}") from e

    def _is_duplicate(self, event: RevenueCatEvent) -> bool:
        return (
            self.settings.deduplicate_events
            and self.ledger is not None
            and self.ledger.is_processed(event.id)
        )

    # Lookups

    def get_user_by_email(self, email: str) -> Optional[Customer]:
        """Get a customer by email address, falling back to login name."""
        user = self.storefront.get_user_by("email", sanitize_email(email))
        if user is None:
            user = self.storefront.get_user_by("login", (email or "").strip())
        return user

    def get_sub_product_by_revcat_name(self, identifier: Optional[str]) -> Optional[ProductDefinition]:
        """Get the subscription product for a RevenueCat product code."""
        plan = self.PLAN_CODES.get(identifier)
        if plan is None:
            return None
        return self.product_repo.get_sub_product(plan)

    def _get_active_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Get the customer's active subscription.

        When several are active the oldest one (lowest id) is used.

        Raises:
            SubscriptionNotFoundError: If the customer has no active subscription
        """
        subscriptions = []
        if event.app_user_id:
            subscriptions = self.storefront.get_subscriptions(
                customer_email=sanitize_email(event.app_user_id) or event.app_user_id.strip(),
                status=SubscriptionStatus.ACTIVE,
            )

        if not subscriptions:
            logger.warning("active_subscription_not_found")
            raise SubscriptionNotFoundError()

        if len(subscriptions) > 1:
            logger.warning(
                "multiple_active_subscriptions",
                subscription_ids=[s.id for s in subscriptions],
                using=subscriptions[0].id,
            )
        return subscriptions[0]

    def _stamp(self, post_id: int, key: str, event: RevenueCatEvent) -> None:
        self.storefront.update_post_meta(post_id, key, event.id)
        log_provenance_stamp(post_id, key, event.id)

    @staticmethod
    def _require_datetime(event: RevenueCatEvent, field: str) -> datetime:
        """Read an epoch-millis field as a UTC datetime.

        Raises:
            InvalidEventError: If the field is missing or out of range
        """
        value = getattr(event, field)
        if value is None:
            raise InvalidEventError(f"Missing {field} in {event.type} event")
        try:
            return millis_to_datetime(value)
        except (OverflowError, OSError, ValueError) as e:
            raise InvalidEventError(f"Invalid {field} in {event.type} event: {value}") from e

    @staticmethod
    def _require_end_after_start(end: datetime, start: datetime) -> None:
        if end <= start:
            raise InvalidEventError("expiration_at_ms must be later than the subscription start")

    # Handlers

    def create_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Create an order and an active subscription for the customer.

        Raises:
            InvalidEventError: No app_user_id or missing timestamps
            UserNotFoundError: No customer matches app_user_id
            ProductNotFoundError: Unknown product code
            IntegrationError: The storefront refused to create the subscription
        """
        if not event.app_user_id:
            raise InvalidEventError("No email address in subscriber attributes")

        user = self.get_user_by_email(event.app_user_id)
        if user is None:
            logger.warning("customer_not_found")
            raise UserNotFoundError()

        product = self.get_sub_product_by_revcat_name(event.product_id)
        if product is None:
            logger.warning("product_not_found", product_id=event.product_id)
            raise ProductNotFoundError()

        start = self._require_datetime(event, "purchased_at_ms")
        end = self._require_datetime(event, "expiration_at_ms")
        self._require_end_after_start(end, start)

        order = self.storefront.create_order(user.id)
        self._stamp(order.id, self.CREATED_WITH_RC_EVT_ID, event)
        self.storefront.update_post_meta(order.id, self.CREATED_WITH_RC_EVT_PAYLOAD, event.to_payload())

        period, interval = product.storefront_period
        try:
            subscription = self.storefront.create_subscription(
                order_id=order.id,
                status=SubscriptionStatus.PENDING,
                billing_period=period,
                billing_interval=interval,
            )
        except StorefrontError as e:
            self.storefront.delete_order(order.id)
            logger.error("subscription_create_failed", order_id=order.id, error=str(e))
            raise IntegrationError(f"Error creating subscription: {e}") from e

        subscription.add_product(product)
        subscription.update_dates({"start": start, "end": end})
        subscription.created_via = self.settings.created_via
        subscription.update_meta_data(self.CREATED_VIA_META, self.settings.created_via)
        subscription.calculate_totals()

        order.update_status(
            OrderStatus.COMPLETED,
            f"Added a subscription through RevCat event ID{event.id}",
            manual=True,
        )
        subscription.update_status(SubscriptionStatus.ACTIVE)

        # Last, so the status change cannot overwrite it.
        subscription.set_date_paid(start)

        logger.info(
            "subscription_created",
            order_id=order.id,
            subscription_id=subscription.id,
            customer_id=user.id,
            plan=product.name.value,
        )
        return subscription

    def cancel_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Cancel the customer's active subscription."""
        subscription = self._get_active_subscription(event)
        subscription.update_status(SubscriptionStatus.CANCELLED)
        self._stamp(subscription.id, self.CANCELLED_WITH_RC_EVT_ID, event)
        return subscription

    def hold_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Put the customer's active subscription on hold."""
        subscription = self._get_active_subscription(event)
        subscription.update_status(SubscriptionStatus.ON_HOLD)
        self._stamp(subscription.id, self.HELD_WITH_RC_EVT_ID, event)
        return subscription

    def renew_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Renew a subscription (extend the end date)."""
        subscription = self._get_active_subscription(event)
        end = self._require_datetime(event, "expiration_at_ms")
        self._require_end_after_start(end, subscription.start_date)

        subscription.update_dates({"end": end})
        subscription.update_status(SubscriptionStatus.ACTIVE)
        self._stamp(subscription.id, self.RENEWED_WITH_RC_EVT_ID, event)
        return subscription

    def change_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Swap the product on the customer's active subscription."""
        subscription = self._get_active_subscription(event)

        product = self.get_sub_product_by_revcat_name(event.product_id)
        if product is None:
            logger.warning("product_not_found", product_id=event.product_id)
            raise ProductNotFoundError()

        end = self._require_datetime(event, "expiration_at_ms")
        self._require_end_after_start(end, subscription.start_date)

        removed = [item.id for item in subscription.get_items()]
        for item_id in removed:
            self.storefront.delete_order_item(item_id)
        subscription.add_product(product, 1)
        log_line_items_replaced(subscription.id, removed, product.product_id)

        subscription.update_dates({"end": end})
        subscription.calculate_totals()
        subscription.add_order_note(f"Update product on a subscription through RevCat event ID{event.id}")

        self._stamp(subscription.id, self.UPDATED_WITH_RC_EVT_ID, event)
        return subscription

    def uncancel_subscription(self, event: RevenueCatEvent) -> Subscription:
        """Uncancel a subscription.

        A cancelled subscription cannot be reactivated in the storefront, so a
        new one is created instead.
        """
        return self.create_subscription(event)
