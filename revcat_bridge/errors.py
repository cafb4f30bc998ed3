"""Errors raised while mirroring RevenueCat events into the storefront.

Every error carries an HTTP-style status code so the webhook endpoint can
answer RevenueCat with something meaningful. RevenueCat retries deliveries
that get a non-2xx answer.
"""

from typing import Optional


class BridgeError(Exception):
    """Base class for errors surfaced to the webhook caller."""

    status_code = 500
    error_code = "bridge_error"
    default_message = "Webhook could not be processed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class UserNotFoundError(BridgeError):
    """No storefront customer matches the event's app_user_id."""

    status_code = 404
    error_code = "user_not_found"
    default_message = "Referenced user not found"


class ProductNotFoundError(BridgeError):
    """The RevenueCat product code does not map to a subscription product."""

    status_code = 404
    error_code = "product_not_found"
    default_message = "Referenced product not found"


class SubscriptionNotFoundError(BridgeError):
    """The customer has no active subscription to act on."""

    status_code = 404
    error_code = "subscription_not_found"
    default_message = "Referenced subscription not found"


class IntegrationError(BridgeError):
    """Configuration or validation failure (missing storefront features, bad input)."""

    error_code = "integration_error"


class UnknownEventTypeError(IntegrationError):
    """The event type has no handler."""

    status_code = 400
    error_code = "unknown_event_type"

    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"Unknown event type: {event_type}")


class InvalidEventError(IntegrationError):
    """The event payload is missing data a handler needs."""

    status_code = 400
    error_code = "invalid_event"
