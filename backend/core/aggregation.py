"""
aggregation.py — Weighted contributions and averages on the /20 scale.

Every figure leaving this module goes through round2, which rounds half up
on the scaled value after nudging by the float epsilon, so 14.615 style
values land on the expected side despite binary drift.
"""

import math
import sys
from typing import Iterable, Optional, Tuple


EPSILON = sys.float_info.epsilon
MARK_MIN = 0.0
MARK_MAX = 20.0


def round2(value: float) -> float:
    """Round half up to 2 decimals (not banker's rounding)."""
    return math.floor((float(value) + EPSILON) * 100 + 0.5) / 100


def to_number(value) -> Optional[float]:
    """Coerce to a finite float or return None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(v) or math.isinf(v):
        return None
    return v


def clamp_mark(mark) -> float:
    """Clamp to [0, 20]; missing marks count as 0."""
    v = to_number(mark)
    if v is None:
        return MARK_MIN
    return max(MARK_MIN, min(MARK_MAX, v))


def effective_coefficient(coef) -> float:
    """Coefficient used for aggregation: negative or unreadable counts as 0."""
    v = to_number(coef)
    if v is None or v < 0:
        return 0.0
    return v


def weighted_contribution(mark, coef) -> float:
    return round2(clamp_mark(mark) * effective_coefficient(coef))


def weighted_totals(entries: Iterable[Tuple[float, float]]) -> Tuple[float, float]:
    """Return (Σ mark·coef, Σ coef) over sanitised (mark, coef) pairs."""
    total = 0.0
    total_coef = 0.0
    for mark, coef in entries:
        c = effective_coefficient(coef)
        total += clamp_mark(mark) * c
        total_coef += c
    return total, total_coef


def weighted_average(entries: Iterable[Tuple[float, float]]) -> float:
    """Σ(mark·coef) / Σcoef rounded to 2 decimals, or 0 when Σcoef is 0."""
    total, total_coef = weighted_totals(entries)
    if total_coef <= 0:
        return 0.0
    return round2(total / total_coef)


def percentage(mark) -> float:
    return round2(clamp_mark(mark) / MARK_MAX * 100)
