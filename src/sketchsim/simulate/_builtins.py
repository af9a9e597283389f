"""Arduino library functions available in expressions.

All functions take already-evaluated numeric arguments.  NaN propagates
through every function except ``isnan``.
"""

from __future__ import annotations

import math
import random

from ._values import divide, normalize_number, round_half_up


def _any_nan(*values: float) -> bool:
    return any(isinstance(v, float) and math.isnan(v) for v in values)


def _map(value, in_min, in_max, out_min, out_max):
    """Linear rescale, rounded half-up."""
    scaled = divide((value - in_min) * (out_max - out_min), in_max - in_min)
    return round_half_up(scaled + out_min)


def _constrain(value, low, high):
    if _any_nan(value, low, high):
        return math.nan
    return max(low, min(high, value))


def _sqrt(value):
    if _any_nan(value) or value < 0:
        return math.nan
    return normalize_number(math.sqrt(value))


def _min(a, b):
    if _any_nan(a, b):
        return math.nan
    return min(a, b)


def _max(a, b):
    if _any_nan(a, b):
        return math.nan
    return max(a, b)


def _pow(base, exponent):
    try:
        return normalize_number(math.pow(base, exponent))
    except OverflowError:
        return math.inf
    except ValueError:
        return math.nan


def _isnan(value):
    return 1 if _any_nan(value) else 0


def random_between(rng: random.Random, *args):
    """``random(max)`` / ``random(min, max)``: integer in ``[min, max)``."""
    low, high = (0, args[0]) if len(args) == 1 else (args[0], args[1])
    span = high - low
    if not math.isfinite(span) or not math.isfinite(low):
        return math.nan
    return normalize_number(math.floor(rng.random() * span) + low)


STDLIB_FUNCTIONS: dict[str, object] = {
    "map": _map,
    "constrain": _constrain,
    "abs": abs,
    "sqrt": _sqrt,
    "min": _min,
    "max": _max,
    "pow": _pow,
    "isnan": _isnan,
}
