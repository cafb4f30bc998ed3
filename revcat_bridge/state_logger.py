"""State change logging for storefront orders and subscriptions.

Tracks transitions with before/after values so a webhook's effect on the
storefront can be reconstructed from the logs.
"""

from typing import Any, Iterable, Optional

from revcat_bridge.logging_config import get_logger

logger = get_logger(__name__)


def log_subscription_status_change(
    subscription_id: int,
    old_status: Any,
    new_status: Any,
    **extra_context: Any,
) -> None:
    """Log subscription status change.

    Args:
        subscription_id: Storefront subscription ID
        old_status: Previous status value
        new_status: New status value
        **extra_context: Additional context (customer_id, etc.)
    """
    logger.info(
        "subscription_status_changed",
        subscription_id=subscription_id,
        old_status=str(old_status),
        new_status=str(new_status),
        **extra_context,
    )


def log_order_status_change(
    order_id: int,
    old_status: Any,
    new_status: Any,
    manual: bool = False,
    **extra_context: Any,
) -> None:
    """Log order status change."""
    logger.info(
        "order_status_changed",
        order_id=order_id,
        old_status=str(old_status),
        new_status=str(new_status),
        manual=manual,
        **extra_context,
    )


def log_dates_change(
    subscription_id: int,
    old_dates: dict[str, Optional[str]],
    new_dates: dict[str, Optional[str]],
    **extra_context: Any,
) -> None:
    """Log subscription date changes, only listing the dates that moved."""
    changed = {
        key: {"old": old_dates.get(key), "new": value}
        for key, value in new_dates.items()
        if old_dates.get(key) != value
    }
    if not changed:
        return

    logger.info(
        "subscription_dates_changed",
        subscription_id=subscription_id,
        changes=changed,
        **extra_context,
    )


def log_line_items_replaced(
    record_id: int,
    removed_item_ids: Iterable[int],
    added_product_id: int,
    **extra_context: Any,
) -> None:
    """Log a product swap on a subscription."""
    logger.info(
        "line_items_replaced",
        record_id=record_id,
        removed_item_ids=list(removed_item_ids),
        added_product_id=added_product_id,
        **extra_context,
    )


def log_provenance_stamp(record_id: int, meta_key: str, event_id: str) -> None:
    """Log that a record was tagged with the event that touched it."""
    logger.debug(
        "provenance_stamped",
        record_id=record_id,
        meta_key=meta_key,
        event_id=event_id,
    )
