"""Math and calculation utilities for WordQuest.

Pure Python math functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

UTILS PURITY: NO `homeassistant.*` imports allowed.

Functions:
    - round_half_up: Integer rounding that matches JavaScript Math.round
    - calculate_percentage: Progress percentage calculations
    - clamp: Bound a value to a range
    - coerce_number: Tolerant numeric conversion for loaded data
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import math

# Module-level logger (no HA dependency)
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default float precision for percentages
DATA_FLOAT_PRECISION = 2


# ==============================================================================
# Rounding
# ==============================================================================


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives.

    Python's round() uses banker's rounding (round(80.5) == 80). Accuracy
    thresholds are compared as whole percentages where 79.5 must count as 80.

    Examples:
        round_half_up(79.5) → 80
        round_half_up(80.49) → 80
        round_half_up(0.5) → 1
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_percentage(
    current: float,
    target: float,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate progress percentage with proper rounding.

    Args:
        current: Current progress value
        target: Target/total value
        precision: Number of decimal places for rounding

    Returns:
        Percentage (0-100) with proper rounding, or 0.0 if target is 0

    Examples:
        calculate_percentage(50, 100) → 50.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(5, 0) → 0.0  # Division by zero protection
    """
    if target <= 0:
        return 0.0
    return round((current / target) * 100, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))


def coerce_number(value: object) -> float | None:
    """Convert a loaded value to a finite float, or None.

    Accepts ints, floats and numeric strings ("12", "87.5"). Booleans,
    NaN/inf and anything else return None.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(Decimal(value.strip()))
        except (InvalidOperation, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number
