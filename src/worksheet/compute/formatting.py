"""
Fixed-point rendering of computed results.

Worksheets were first rendered by a browser client, and stored responses,
exports and clinician expectations all follow its fixed-point rules: the
exact binary value of the double is rounded half away from zero, and a
negative value that rounds to zero keeps its sign ("-0.0"). ``decimal`` gives
exact control over both.

Examples:
    >>> to_fixed(2.5, 0)
    '3'
    >>> to_fixed(1.005, 2)  # 1.005 is 1.00499999... in binary
    '1.00'
    >>> format_percentage_change(35.0, 45.0, 80.0)
    '+35% (45% → 80%)'
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal

from ..core.constants import COUNT_SUFFIX
from ..core.grammar import ComputeFormat

__all__ = [
    "to_fixed",
    "format_aggregate",
    "format_average",
    "format_count",
    "format_difference",
    "format_percentage_change",
]

# Wide enough for any double rendered with a handful of decimals.
_WIDE = Context(prec=400)


def to_fixed(x: float, digits: int) -> str:
    """
    Render ``x`` with exactly ``digits`` decimals.

    Args:
        x (float): Finite number.
        digits (int): Decimal places (>= 0).

    Returns:
        str: Fixed-point text, e.g. ``to_fixed(0.25, 1) == "0.3"``.

    Raises:
        ValueError: If ``x`` is not finite.
    """
    if not math.isfinite(x):
        raise ValueError(f"cannot render non-finite value {x!r}")
    if x == 0:
        # -0.0 renders unsigned; only negatives that round to zero keep "-".
        x = 0.0
    quantum = Decimal(1).scaleb(-digits)
    exact = Decimal(x)
    return format(exact.quantize(quantum, rounding=ROUND_HALF_UP, context=_WIDE), "f")


def format_aggregate(x: float, fmt: str | None) -> str:
    """sum/min/max: whole number for ``integer`` format, else one decimal."""
    return to_fixed(x, 0 if fmt == ComputeFormat.INTEGER.value else 1)


def format_average(x: float) -> str:
    return to_fixed(x, 1)


def format_count(n: int) -> str:
    return f"{n} {COUNT_SUFFIX}"


def format_difference(diff: float) -> str:
    return to_fixed(diff, 1)


def format_percentage_change(diff: float, mean_a: float, mean_b: float) -> str:
    """``"<signed diff>% (<meanA>% → <meanB>%)"``; "+" only for a positive difference."""
    sign = "+" if diff > 0 else ""
    return f"{sign}{to_fixed(diff, 0)}% ({to_fixed(mean_a, 0)}% → {to_fixed(mean_b, 0)}%)"
