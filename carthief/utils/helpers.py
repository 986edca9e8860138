"""Common helper functions for Car Thief."""

import math
from typing import Any


def format_money(amount: int | float) -> str:
    """Format a money amount for mission reports.

    Args:
        amount: Money amount

    Returns:
        Formatted string (e.g., "$1,234,567")
    """
    if amount < 0:
        return f"-${abs(amount):,.0f}"
    return f"${amount:,.0f}"


def format_time(seconds: int | float) -> str:
    """Format a mission duration in human readable format.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (e.g., "1m 5s")
    """
    seconds = int(seconds)

    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    secs = seconds % 60
    return f"{minutes}m {secs}s" if secs else f"{minutes}m"


def percent_label(value: float) -> str:
    """Format a signed fractional delta as a percentage.

    Args:
        value: Fractional delta (0.05 -> "+5%")

    Returns:
        Signed percentage string
    """
    if not math.isfinite(value) or value == 0:
        return "0%"
    sign = "+" if value > 0 else ""
    return f"{sign}{round(value * 100)}%"


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between min and max.

    Args:
        value: Value to clamp
        min_val: Minimum value
        max_val: Maximum value

    Returns:
        Clamped value
    """
    return max(min_val, min(max_val, value))


def to_finite(value: Any, fallback: float = 0.0) -> float:
    """Coerce a raw value to a finite float.

    Args:
        value: Raw value (number, numeric string, None, ...)
        fallback: Value returned when coercion fails

    Returns:
        Finite float or the fallback
    """
    if isinstance(value, bool):
        return fallback
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return fallback
    return numeric if math.isfinite(numeric) else fallback


def slugify(value: str) -> str:
    """Turn a display name into a lowercase dashed identifier."""
    slug = "".join(ch if ch.isalnum() else "-" for ch in str(value).lower())
    while "--" in slug:
        slug = slug.replace("--", "-")
    return slug.strip("-")
