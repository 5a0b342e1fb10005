"""Output formatting utilities for the budget dashboard.

Provides reusable functions for:
- Formatting currency amounts with es-MX digit grouping
- Formatting percentages
"""

from typing import Optional


def format_number(value: Optional[float], max_decimals: int = 3) -> str:
    """Group digits with commas and keep at most *max_decimals* decimals.

    Trailing zeros are dropped, so whole amounts render without a decimal
    point, matching how the amounts read in the es-MX locale.

    Examples:
        format_number(1234567) -> "1,234,567"
        format_number(1234.5) -> "1,234.5"
        format_number(0.12345) -> "0.123"
        format_number(None) -> "0"
    """
    if value is None:
        return "0"
    text = f"{value:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def format_amount(value: Optional[float]) -> str:
    """Format a peso amount for display.

    Examples:
        format_amount(1234567) -> "$1,234,567"
        format_amount(0) -> "$0"
        format_amount(None) -> "$0"
    """
    return f"${format_number(value)}"


def format_percent(value: Optional[float], precision: int = 1) -> str:
    """Format a percentage for display.

    Examples:
        format_percent(28.571) -> "28.6%"
        format_percent(0) -> "0.0%"
        format_percent(None) -> "0.0%"
    """
    if value is None:
        value = 0.0
    return f"{value:.{precision}f}%"
