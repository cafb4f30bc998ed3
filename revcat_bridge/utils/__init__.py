"""Utility functions and helpers for the bridge."""

from revcat_bridge.utils.billing_period import (
    parse_billing_period,
    to_storefront_period,
    validate_billing_period,
)
from revcat_bridge.utils.dates import format_gmt, millis_to_datetime, utcnow
from revcat_bridge.utils.sanitize import sanitize_email

__all__ = [
    # Billing period parsing
    "parse_billing_period",
    "to_storefront_period",
    "validate_billing_period",
    # Dates
    "millis_to_datetime",
    "format_gmt",
    "utcnow",
    # Sanitizing
    "sanitize_email",
]
