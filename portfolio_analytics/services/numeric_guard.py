"""
Null-safe scalar arithmetic for sparse daily counters.

Every counter the engine sees is optional, and ``None`` means "no data". The
helpers here encode the two propagation rules the rest of the engine relies
on:

- Division is strict: an unknown operand or a zero denominator yields unknown.
  Never raises, never returns NaN or infinity.
- Addition is lenient: an unknown operand contributes 0. This lets a
  desktop + mobile/tablet denominator resolve when only one side was
  reported, while a ratio whose own numerator is unknown stays unknown.

Example:
    >>> safe_divide(80, safe_add(80, 20))
    0.8
    >>> safe_divide(5, 0) is None
    True
    >>> safe_add(None, 5)
    5
"""

import math
from typing import Optional, Union

Number = Union[int, float]

# Deciseconds -> milliseconds
DECISECOND_MS: float = 100.0

# Symmetric display range for z-scores
ZSCORE_BOUND: float = 3.0


def as_optional_float(value: Optional[Number]) -> Optional[float]:
    """
    Convert a number to float, mapping None, NaN and +/-inf to None.
    """
    if value is None:
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return result


def safe_divide(
    numerator: Optional[Number],
    denominator: Optional[Number]
) -> Optional[float]:
    """
    Divide two optional numbers.

    Args:
        numerator: Dividend; None means unknown.
        denominator: Divisor; None or exactly 0 yields unknown.

    Returns:
        The quotient as a finite float, or None when it cannot be computed.
        ``safe_divide(0, 0)`` is None, not 0.
    """
    if numerator is None or denominator is None:
        return None
    if denominator == 0:
        return None
    try:
        return as_optional_float(numerator / denominator)
    except OverflowError:
        return None


def safe_add(a: Optional[Number], b: Optional[Number]) -> Number:
    """
    Add two optional numbers, treating an unknown operand as 0.

    ``safe_add(None, None)`` is 0, which a later ``safe_divide`` turns back
    into unknown.
    """
    return (a if a is not None else 0) + (b if b is not None else 0)


def scale_time_unit(value: Optional[Number]) -> Optional[float]:
    """
    Convert a stored decisecond total to milliseconds, propagating unknown.
    """
    if value is None:
        return None
    return as_optional_float(value * DECISECOND_MS)


def clamp(
    value: Number,
    lo: float = -ZSCORE_BOUND,
    hi: float = ZSCORE_BOUND
) -> float:
    """
    Saturate a value into [lo, hi].

    Defaults to the z-score display range.

    Example:
        >>> clamp(-4.0)
        -3.0
        >>> clamp(0.5, 0.0, 1.0)
        0.5
    """
    return float(max(lo, min(hi, value)))
