"""Billing period parsing utilities.

Catalog entries describe their renewal cycle as an ISO 8601 duration
(``P1M``, ``P1Y``). The storefront stores the same thing as a period name
plus an interval, e.g. ``("month", 1)`` or ``("week", 2)``.
"""

import re
from typing import Tuple

# ISO 8601 unit letter -> storefront period name
STOREFRONT_PERIODS = {
    "D": "day",
    "W": "week",
    "M": "month",
    "Y": "year",
}

_PERIOD_PATTERN = re.compile(r"^(\d+)?([DWMY])$")


def parse_billing_period(period: str) -> Tuple[int, str]:
    """Parse an ISO 8601 duration string into ``(count, unit)``.

    Supports the simple forms used for subscription plans:
    - P[n]D - days
    - P[n]W - weeks
    - P[n]M - months
    - P[n]Y - years

    Args:
        period: ISO 8601 duration string (e.g., "P1M", "P1Y", "P14D")

    Returns:
        Tuple of the positive count and the unit letter

    Raises:
        ValueError: If the period string is invalid or unsupported

    Examples:
        >>> parse_billing_period("P1M")
        (1, 'M')

        >>> parse_billing_period("p2w")
        (2, 'W')
    """
    if not period or not isinstance(period, str):
        raise ValueError("Period must be a non-empty string")

    period = period.strip().upper()

    if not period.startswith("P"):
        raise ValueError(f"Invalid period format: '{period}'. Must start with 'P'")

    duration_str = period[1:]
    if not duration_str:
        raise ValueError(f"Invalid period format: '{period}'. No duration specified")

    match = _PERIOD_PATTERN.match(duration_str)
    if not match:
        raise ValueError(
            f"Unsupported period format: '{period}'. "
            "Supported formats: P[n]D, P[n]W, P[n]M, P[n]Y"
        )

    number_str, unit = match.groups()
    number = int(number_str) if number_str else 1

    if number <= 0:
        raise ValueError(f"Period number must be positive, got: {number}")

    return number, unit


def to_storefront_period(period: str) -> Tuple[str, int]:
    """Convert an ISO 8601 duration to the storefront's ``(period, interval)``.

    Examples:
        >>> to_storefront_period("P1Y")
        ('year', 1)

        >>> to_storefront_period("P3M")
        ('month', 3)
    """
    interval, unit = parse_billing_period(period)
    return STOREFRONT_PERIODS[unit], interval


def validate_billing_period(period: str) -> bool:
    """Validate that a string is a supported billing period.

    Examples:
        >>> validate_billing_period("P1M")
        True

        >>> validate_billing_period("monthly")
        False
    """
    try:
        parse_billing_period(period)
        return True
    except (ValueError, TypeError):
        return False
