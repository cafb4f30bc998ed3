"""Webhook API - receives RevenueCat deliveries.

Implements:
- POST /webhooks/revenuecat - Apply a RevenueCat event to the storefront

RevenueCat posts ``{"api_version": "1.0", "event": {...}}``. A bare event
object is accepted too. Bridge errors raised while applying the event are
turned into JSON error responses by the application's exception handlers.
"""

import json

from fastapi import APIRouter, HTTPException, Request
from pydantic import ValidationError

from revcat_bridge.bootstrap import get_bridge
from revcat_bridge.logging_config import get_logger
from revcat_bridge.models import ErrorResponse, WebhookAck, WebhookEnvelope

logger = get_logger(__name__)
router = APIRouter(tags=["Webhooks"], prefix="/webhooks")


@router.post(
    "/revenuecat",
    response_model=WebhookAck,
    summary="Receive RevenueCat webhook",
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def revenuecat_webhook(request: Request) -> WebhookAck:
    """Apply one RevenueCat event.

    Returns:
        WebhookAck with what the bridge did

    Raises:
        400: Body is not a JSON object, or the event is invalid / of an unknown type
        404: Customer, product or active subscription not found
        500: Storefront misconfigured
    """
    try:
        payload = json.loads((await request.body()).decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("webhook_invalid_json", error=str(e))
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_json", "message": "Invalid JSON payload"},
        )

    if not isinstance(payload, dict):
        raise HTTPException(
            status_code=400,
            detail={"error": "invalid_payload", "message": "Webhook body must be a JSON object"},
        )

    api_version = None
    event = payload
    if "event" in payload:
        try:
            envelope = WebhookEnvelope.model_validate(payload)
        except ValidationError:
            raise HTTPException(
                status_code=400,
                detail={"error": "invalid_payload", "message": "Webhook event must be a JSON object"},
            )
        api_version, event = envelope.api_version, envelope.event

    logger.info(
        "webhook_received",
        api_version=api_version,
        event_type=event.get("type"),
        event_id=event.get("id"),
    )

    outcome = get_bridge().dispatch(event)
    if outcome is None:
        logger.warning("webhook_not_handled", event_type=event.get("type"))
        return WebhookAck(event_id=event.get("id"), event_type=event.get("type"))

    return WebhookAck(
        duplicate=outcome.duplicate,
        action=outcome.action.value,
        event_id=outcome.event_id,
        event_type=outcome.event_type,
        order_id=outcome.order_id,
        subscription_id=outcome.subscription_id,
    )
