"""String processing utilities for budget record normalization.

safe_float() runs once per amount field per document on every pushed
snapshot, so it short-circuits the common numeric case before any regex work.
"""

import math

from utils.patterns import CURRENCY_SYMBOLS, THOUSANDS_SEP, WHITESPACE


def safe_float(val, default: float = 0.0) -> float:
    """Safely convert value to float with fallback default.

    Handles:
    - None, empty strings -> default
    - Numeric types -> float (bool is rejected)
    - Strings with currency symbols, whitespace, thousands separators
    - NaN, infinities and invalid input -> default

    Args:
        val: Value to convert (any type)
        default: Value to return on failure (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None or val == '' or isinstance(val, bool):
        return default
    if isinstance(val, (int, float)):
        result = float(val)
        return result if math.isfinite(result) else default

    try:
        s = str(val).strip()
        s = CURRENCY_SYMBOLS.sub('', s)
        s = THOUSANDS_SEP.sub('', s)
        s = s.replace(',', '').strip()
        result = float(s) if s else default
    except (ValueError, TypeError):
        return default
    return result if math.isfinite(result) else default


def safe_amount(val) -> float:
    """Coerce a stored amount into a non-negative float.

    Negative amounts are outside the data model and collapse to 0.0, the
    same value a missing or unparseable amount gets.
    """
    amount = safe_float(val)
    return amount if amount > 0 else 0.0


def normalize_whitespace(s: str) -> str:
    """Normalize multiple whitespace characters to single spaces.

    Example:
        "Educación   Pública\\n" -> "Educación Pública"
    """
    return WHITESPACE.sub(' ', s).strip()


def clean_label(val, fallback: str) -> str:
    """Return a display label, or *fallback* when the value is blank.

    Non-string values (numeric codes stored by some loaders) are
    stringified first.
    """
    if val is None:
        return fallback
    label = normalize_whitespace(str(val))
    return label or fallback
