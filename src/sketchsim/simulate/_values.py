"""Value system for the simulator.

Sketch values are ``int``, ``float`` or ``str``.  Conversions follow
the loose rules sketches are written against: strings coerce to numbers
where they look like one (else NaN), integral floats print without a
decimal part, and 0, NaN and ``""`` are falsy.
"""

from __future__ import annotations

import math
import re

from sketchsim.errors import SimulationError

Value = int | float | str

__all__ = [
    "SimulationError",
    "Value",
    "c_remainder",
    "divide",
    "expand_escapes",
    "format_printf",
    "is_truthy",
    "loose_compare",
    "normalize_number",
    "round_half_up",
    "to_number",
    "to_text",
]


_NUMERIC_TEXT_RE = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")
_HEX_TEXT_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def to_number(value: object) -> int | float:
    """Coerce *value* to a number; text that is not numeric gives NaN."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _NUMERIC_TEXT_RE.match(text):
            return normalize_number(float(text)) if any(c in text for c in ".eE") else int(text)
        if _HEX_TEXT_RE.match(text):
            return int(text, 16)
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
    return math.nan


def normalize_number(value: int | float) -> int | float:
    """Integral finite floats become ints."""
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def to_text(value: object) -> str:
    """Render *value* the way ``Serial.print`` shows it."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def is_truthy(value: object) -> bool:
    if isinstance(value, str):
        return value != ""
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def loose_compare(op: str, left: object, right: object) -> bool:
    """Compare two values; strings compare as text only against strings."""
    if not (isinstance(left, str) and isinstance(right, str)):
        left = to_number(left)
        right = to_number(right)
    if op == "==":
        return left == right
    if op == "!=":
        return left != right
    if op == ">":
        return left > right
    if op == "<":
        return left < right
    if op == ">=":
        return left >= right
    if op == "<=":
        return left <= right
    raise SimulationError(f"Unknown comparison operator: {op!r}")


# ---------------------------------------------------------------------------
# Arithmetic helpers
# ---------------------------------------------------------------------------

def round_half_up(value: int | float) -> int | float:
    """Round to the nearest integer, halves towards +infinity."""
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


def divide(left: int | float, right: int | float) -> int | float:
    """Float division; a zero divisor yields +/-inf, or NaN for 0/0."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.inf if left > 0 else -math.inf
    return normalize_number(left / right)


def c_remainder(left: int | float, right: int | float) -> int | float:
    """Remainder with the sign of the dividend; zero divisor gives NaN."""
    if right == 0:
        return math.nan
    if isinstance(left, int) and isinstance(right, int):
        result = abs(left) % abs(right)
        return -result if left < 0 else result
    return normalize_number(math.fmod(left, right))


# ---------------------------------------------------------------------------
# Serial text
# ---------------------------------------------------------------------------

_PRINTF_RE = re.compile(r"%(?:\.(\d+))?([dfsuclx%])")


def expand_escapes(text: str) -> str:
    """Expand the ``\\n`` and ``\\t`` escapes; others stay as written."""
    return text.replace("\\n", "\n").replace("\\t", "\t")


def format_printf(fmt: str, args: list[object]) -> str:
    """Substitute ``%d %u %f %.Nf %s %c %l %x %%`` positionally.

    ``%d``/``%u`` floor the argument, ``%.Nf`` fixes N decimals; every
    other conversion prints the value as ``Serial.print`` would.  A missing
    argument prints ``NaN`` for the numeric conversions and nothing otherwise.
    """
    remaining = iter(args)

    def _substitute(m: re.Match[str]) -> str:
        precision, conversion = m.group(1), m.group(2)
        if conversion == "%":
            return "%"
        value = next(remaining, None)
        if value is None:
            numeric = conversion in ("d", "u") or (conversion == "f" and precision is not None)
            return "NaN" if numeric else ""
        if conversion == "f" and precision is not None:
            number = to_number(value)
            if not math.isfinite(number):
                return to_text(float(number))
            return f"{number:.{int(precision)}f}"
        if conversion in ("d", "u"):
            number = to_number(value)
            if not math.isfinite(number):
                return to_text(float(number))
            return str(math.floor(number))
        return to_text(value)

    return expand_escapes(_PRINTF_RE.sub(_substitute, fmt))
