"""Storefront domain models: customers, orders, subscriptions, line items.

These mirror the WooCommerce / WooCommerce Subscriptions entities the bridge
mutates. Orders and subscriptions share an id sequence (they are both posts in
the storefront) and carry free-form meta plus a list of notes.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional

from pydantic import BaseModel, Field, PrivateAttr

from revcat_bridge.models.product import ProductDefinition
from revcat_bridge.utils.dates import format_gmt, utcnow

if TYPE_CHECKING:
    from revcat_bridge.repositories.storefront import Storefront

CENTS = Decimal("0.01")


class StorefrontError(Exception):
    """Raised when the storefront rejects an operation."""

    pass


class SubscriptionStatus(str, Enum):
    """Subscription statuses the bridge moves between."""

    PENDING = "pending"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return _SUBSCRIPTION_LABELS[self]


_SUBSCRIPTION_LABELS = {
    SubscriptionStatus.PENDING: "Pending",
    SubscriptionStatus.ACTIVE: "Active",
    SubscriptionStatus.ON_HOLD: "On hold",
    SubscriptionStatus.CANCELLED: "Cancelled",
}

# Cancelled is terminal: the storefront cannot reactivate a cancelled subscription.
SUBSCRIPTION_TRANSITIONS = {
    SubscriptionStatus.PENDING: {
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.ON_HOLD,
        SubscriptionStatus.CANCELLED,
    },
    SubscriptionStatus.ACTIVE: {SubscriptionStatus.ON_HOLD, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.ON_HOLD: {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED},
    SubscriptionStatus.CANCELLED: set(),
}


class OrderStatus(str, Enum):
    """Order statuses."""

    PENDING = "pending"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def label(self) -> str:
        return _ORDER_LABELS[self]


_ORDER_LABELS = {
    OrderStatus.PENDING: "Pending payment",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.ON_HOLD: "On hold",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.FAILED: "Failed",
}


class Customer(BaseModel):
    """Storefront user account."""

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="Account email address")
    login: str = Field(..., description="Login name")
    display_name: Optional[str] = Field(None, description="Display name")


class LineItem(BaseModel):
    """Product line on an order or subscription."""

    id: int = Field(..., description="Order item ID")
    product_id: int = Field(..., description="Storefront product ID")
    name: str = Field(..., description="Product title at the time it was added")
    quantity: int = Field(default=1, ge=1)
    price: Decimal = Field(..., description="Unit price")
    total: Decimal = Field(..., description="Line total")


class OrderNote(BaseModel):
    """Note attached to an order or subscription."""

    content: str
    date_created: datetime = Field(default_factory=utcnow)
    customer_note: bool = False


class StorefrontRecord(BaseModel):
    """Fields and behaviour shared by orders and subscriptions."""

    record_type: ClassVar[str] = "record"

    id: int = Field(..., description="Post ID")
    customer_id: int = Field(..., description="Owning customer")
    customer_email: str = Field(..., description="Billing email")
    currency: str = Field(default="USD")
    line_items: list[LineItem] = Field(default_factory=list)
    total: Decimal = Field(default=Decimal("0.00"))
    meta: dict[str, Any] = Field(default_factory=dict)
    notes: list[OrderNote] = Field(default_factory=list)
    created_via: Optional[str] = Field(None, description="Channel that created the record")
    date_created: datetime = Field(default_factory=utcnow)
    date_paid: Optional[datetime] = None

    _storefront: Any = PrivateAttr(default=None)

    def attach(self, storefront: "Storefront") -> "StorefrontRecord":
        """Bind the record to the storefront that allocates its item ids."""
        self._storefront = storefront
        return self

    def get_items(self) -> list[LineItem]:
        return list(self.line_items)

    def _next_item_id(self) -> int:
        if self._storefront is not None:
            return self._storefront.next_item_id()
        return max((item.id for item in self.line_items), default=0) + 1

    def add_product(self, product: ProductDefinition, quantity: int = 1) -> LineItem:
        """Add a product line and return it. Totals are not recalculated."""
        price = product.price.quantize(CENTS, rounding=ROUND_HALF_UP)
        item = LineItem(
            id=self._next_item_id(),
            product_id=product.product_id,
            name=product.title,
            quantity=quantity,
            price=price,
            total=(price * quantity).quantize(CENTS, rounding=ROUND_HALF_UP),
        )
        self.line_items.append(item)
        self.currency = product.currency
        return item

    def remove_item(self, item_id: int) -> bool:
        for index, item in enumerate(self.line_items):
            if item.id == item_id:
                del self.line_items[index]
                return True
        return False

    def calculate_totals(self) -> Decimal:
        self.total = sum((item.total for item in self.line_items), Decimal("0.00"))
        return self.total

    def add_order_note(self, note: str, customer_note: bool = False) -> OrderNote:
        order_note = OrderNote(content=note, customer_note=customer_note)
        self.notes.append(order_note)
        return order_note

    def update_meta_data(self, key: str, value: Any) -> None:
        self.meta[key] = value

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.meta.get(key, default)

    def set_date_paid(self, date_paid: datetime) -> None:
        self.date_paid = date_paid


class Order(StorefrontRecord):
    """Storefront order."""

    record_type: ClassVar[str] = "order"

    status: OrderStatus = Field(default=OrderStatus.PENDING)
    date_completed: Optional[datetime] = None

    def update_status(self, new_status: OrderStatus, note: str = "", manual: bool = False) -> None:
        """Move the order to ``new_status`` and record a note.

        Completing an order stamps the paid and completed dates if unset.
        """
        from revcat_bridge.state_logger import log_order_status_change

        new_status = OrderStatus(new_status)
        old_status = self.status
        if old_status == new_status:
            if note:
                self.add_order_note(note)
            return

        self.status = new_status
        if new_status == OrderStatus.COMPLETED:
            now = utcnow()
            self.date_completed = self.date_completed or now
            self.date_paid = self.date_paid or now

        transition = f"Order status changed from {old_status.label} to {new_status.label}."
        self.add_order_note(f"{note} {transition}".strip())
        log_order_status_change(
            order_id=self.id,
            old_status=old_status.value,
            new_status=new_status.value,
            manual=manual,
            customer_id=self.customer_id,
        )


class Subscription(StorefrontRecord):
    """Storefront subscription, a child of the order that created it."""

    record_type: ClassVar[str] = "subscription"

    parent_id: int = Field(..., description="Order that created the subscription")
    status: SubscriptionStatus = Field(default=SubscriptionStatus.PENDING)
    billing_period: str = Field(..., description="day, week, month or year")
    billing_interval: int = Field(default=1, ge=1)
    start_date: datetime = Field(default_factory=utcnow)
    end_date: Optional[datetime] = None

    def can_transition_to(self, new_status: SubscriptionStatus) -> bool:
        new_status = SubscriptionStatus(new_status)
        return new_status == self.status or new_status in SUBSCRIPTION_TRANSITIONS[self.status]

    def update_status(self, new_status: SubscriptionStatus, note: str = "") -> None:
        """Move the subscription to ``new_status``.

        Raises:
            StorefrontError: If the transition is not allowed
        """
        from revcat_bridge.state_logger import log_subscription_status_change

        new_status = SubscriptionStatus(new_status)
        old_status = self.status
        if not self.can_transition_to(new_status):
            raise StorefrontError(
                f"Unable to change subscription status from '{old_status.value}' to '{new_status.value}'."
            )
        if old_status == new_status:
            if note:
                self.add_order_note(note)
            return

        self.status = new_status
        transition = f"Status changed from {old_status.label} to {new_status.label}."
        self.add_order_note(f"{note} {transition}".strip())
        log_subscription_status_change(
            subscription_id=self.id,
            old_status=old_status.value,
            new_status=new_status.value,
            customer_id=self.customer_id,
        )

    def get_date(self, date_type: str) -> Optional[datetime]:
        if date_type == "start":
            return self.start_date
        if date_type == "end":
            return self.end_date
        raise StorefrontError(f"Invalid date type: {date_type}")

    def update_dates(self, dates: Mapping[str, Optional[datetime]]) -> None:
        """Update the ``start`` and/or ``end`` dates.

        Raises:
            StorefrontError: On an unknown date key or an end not after the start
        """
        from revcat_bridge.state_logger import log_dates_change

        unknown = set(dates) - {"start", "end"}
        if unknown:
            raise StorefrontError(f"Invalid date type: {', '.join(sorted(unknown))}")

        start = dates.get("start", self.start_date)
        end = dates.get("end", self.end_date)
        if start is None:
            raise StorefrontError("The start date of a subscription is required.")
        if end is not None and end <= start:
            raise StorefrontError("The end date must occur after the start date.")

        old_dates = {"start": format_gmt(self.start_date), "end": format_gmt(self.end_date)}
        self.start_date = start
        self.end_date = end
        log_dates_change(
            subscription_id=self.id,
            old_dates=old_dates,
            new_dates={"start": format_gmt(start), "end": format_gmt(end)},
        )
