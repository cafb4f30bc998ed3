"""Tests for bridge errors and their status codes."""

import pytest

from revcat_bridge.errors import (
    BridgeError,
    IntegrationError,
    InvalidEventError,
    ProductNotFoundError,
    SubscriptionNotFoundError,
    UnknownEventTypeError,
    UserNotFoundError,
)


class TestBridgeErrors:
    """Test default messages and status codes."""

    @pytest.mark.parametrize(
        "error_class,status_code,message",
        [
            (UserNotFoundError, 404, "Referenced user not found"),
            (ProductNotFoundError, 404, "Referenced product not found"),
            (SubscriptionNotFoundError, 404, "Referenced subscription not found"),
        ],
    )
    def test_not_found_errors(self, error_class, status_code, message):
        error = error_class()
        assert error.status_code == status_code
        assert error.message == message
        assert str(error) == message

    def test_message_and_status_override(self):
        error = IntegrationError("Storefront offline", status_code=503)
        assert error.message == "Storefront offline"
        assert error.status_code == 503
        assert IntegrationError.status_code == 500

    def test_unknown_event_type(self):
        error = UnknownEventTypeError("TRANSFER")
        assert error.event_type == "TRANSFER"
        assert error.message == "Unknown event type: TRANSFER"
        assert error.status_code == 400

    def test_hierarchy(self):
        assert issubclass(InvalidEventError, BridgeError)
        assert InvalidEventError().status_code == 400
