"""Storefront control API for local runs and test orchestration.

Implements:
- POST /storefront/customers - Register a customer
- GET /storefront/customers/{email}/subscriptions - List a customer's subscriptions
- GET /storefront/subscriptions/{subscription_id} - Get a subscription
- GET /storefront/orders/{order_id} - Get an order
- POST /storefront/reset - Clear storefront and processed-event state

Only available when the bridge runs against the in-memory storefront.
"""

from fastapi import APIRouter, HTTPException

from revcat_bridge.bootstrap import get_bridge
from revcat_bridge.logging_config import get_logger
from revcat_bridge.models import (
    CreateCustomerRequest,
    Customer,
    Order,
    ResetResponse,
    Subscription,
)
from revcat_bridge.repositories.memory_storefront import InMemoryStorefront

logger = get_logger(__name__)
router = APIRouter(tags=["Storefront Control API"], prefix="/storefront")


def _memory_storefront() -> InMemoryStorefront:
    storefront = get_bridge().storefront
    if not isinstance(storefront, InMemoryStorefront):
        raise HTTPException(
            status_code=501,
            detail={
                "error": "not_supported",
                "message": "Control API requires the in-memory storefront",
            },
        )
    return storefront


@router.post(
    "/customers",
    response_model=Customer,
    status_code=201,
    summary="Register customer",
)
async def create_customer(request: CreateCustomerRequest) -> Customer:
    """Register a storefront customer that RevenueCat events can refer to.

    Raises:
        409: Email or login already registered
    """
    storefront = _memory_storefront()
    try:
        return storefront.add_customer(
            email=request.email,
            login=request.login,
            display_name=request.display_name,
        )
    except ValueError as e:
        logger.warning("customer_conflict", error=str(e))
        raise HTTPException(
            status_code=409,
            detail={"error": "Customer exists", "message": str(e)},
        )


@router.get(
    "/customers/{email}/subscriptions",
    response_model=list[Subscription],
    summary="List customer subscriptions",
)
async def list_customer_subscriptions(email: str) -> list[Subscription]:
    """All subscriptions billed to ``email``, oldest first."""
    return _memory_storefront().get_subscriptions(customer_email=email)


@router.get(
    "/subscriptions/{subscription_id}",
    response_model=Subscription,
    summary="Get subscription",
)
async def get_subscription(subscription_id: int) -> Subscription:
    subscription = _memory_storefront().get_subscription(subscription_id)
    if subscription is None:
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Subscription not found",
                "message": f"No subscription with ID {subscription_id}",
            },
        )
    return subscription


@router.get(
    "/orders/{order_id}",
    response_model=Order,
    summary="Get order",
)
async def get_order(order_id: int) -> Order:
    order = _memory_storefront().get_order(order_id)
    if order is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "Order not found", "message": f"No order with ID {order_id}"},
        )
    return order


@router.post(
    "/reset",
    response_model=ResetResponse,
    summary="Reset storefront state",
)
async def reset_storefront() -> ResetResponse:
    """Clear all customers, orders, subscriptions and processed event ids."""
    bridge = get_bridge()
    storefront = _memory_storefront()

    stats = storefront.get_statistics()
    events = bridge.ledger.count()

    storefront.clear()
    bridge.ledger.clear()

    logger.warning("storefront_reset", **stats, events=events)
    return ResetResponse(
        subscriptions_cleared=stats["subscriptions"],
        orders_cleared=stats["orders"],
        customers_cleared=stats["customers"],
        events_cleared=events,
        message="Storefront state cleared",
    )
