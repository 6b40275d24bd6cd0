# forecast/utils/math_utils.py
"""
Numeric coercion and pro-ration helpers used by the calculation engine.

Simulation records are persisted as JSON by the desktop UI, so prices,
quantities and amounts may arrive as numbers, numeric strings, empty
strings or None. None of these helpers raise: malformed input degrades
to the supplied default.
"""

import math


def to_float(value, default=0.0):
    """
    Parses a decimal value as stored by the UI.

    Args:
        value: int, float or numeric string (e.g. "1200.50")
        default: value returned when parsing is not possible

    Returns:
        float: parsed value, or `default` for None, booleans, non-numeric
        strings, NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (ValueError, TypeError, OverflowError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_int(value, default=0):
    """
    Parses an integer quantity. Decimals are truncated toward zero.

    Returns:
        int: parsed value, or `default` when `value` is not numeric.
    """
    number = to_float(value, None)
    if number is None:
        return default
    return int(number)


def prorate(amount, overlap_days, total_days):
    """
    Share of `amount` falling into a bucket, proportional to days.

    Formula: amount / total_days * overlap_days

    Edge Cases:
        - Returns 0.0 if total_days is not positive (empty or inverted range)
        - Returns 0.0 if the bucket does not overlap the range
    """
    if total_days <= 0 or overlap_days <= 0:
        return 0.0
    return (amount / total_days) * overlap_days
