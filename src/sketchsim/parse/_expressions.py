"""Expression and condition text -> AST nodes."""

from __future__ import annotations

import functools
import re

from sketchsim.model.expressions import (
    AllOf,
    AnyOf,
    ArithmeticExpr,
    BuiltinCallExpr,
    CompareOp,
    Comparison,
    Condition,
    Expression,
    LiteralExpr,
    NotCondition,
    PinRead,
    PinReadExpr,
    TimeExpr,
    TimeUnit,
    Truthy,
    VariableRef,
)

from ._source import find_matching, parse_number, split_args


# Keywords resolved at parse time
KEYWORD_CONSTANTS: dict[str, int | str] = {
    "HIGH": 1,
    "LOW": 0,
    "true": 1,
    "false": 0,
    "INPUT": "INPUT",
    "OUTPUT": "OUTPUT",
    "INPUT_PULLUP": "INPUT_PULLUP",
}

# Accepted argument counts per library function
BUILTIN_ARITY: dict[str, tuple[int, ...]] = {
    "map": (5,),
    "constrain": (3,),
    "random": (1, 2),
    "abs": (1,),
    "sqrt": (1,),
    "min": (2,),
    "max": (2,),
    "pow": (2,),
    "isnan": (1,),
}

_STRING_LITERAL_RE = re.compile(r'^"(?:[^"\\]|\\.)*"$|^\'(?:[^\'\\]|\\.)*\'$')
_TIME_RE = re.compile(r"^(millis|micros)\s*\(\s*\)$")
_CALL_RE = re.compile(r"^([A-Za-z_]\w*)\s*\(")
_IDENT_RE = re.compile(r"^[A-Za-z_]\w*$")


def parse_call(text: str) -> tuple[str, list[str]] | None:
    """Split ``name(args...)`` into the name and raw argument texts.

    Text after the matching ``)`` is ignored.  Returns None when *text*
    does not start with a call or the parenthesis is never closed.
    """
    m = _CALL_RE.match(text)
    if m is None:
        return None
    open_index = m.end() - 1
    close_index = find_matching(text, open_index)
    if close_index < 0:
        return None
    return m.group(1), split_args(text[open_index + 1:close_index])


@functools.lru_cache(maxsize=4096)
def parse_expression(text: str) -> Expression:
    """Parse a value expression.

    Never raises: text outside the grammar becomes ``ArithmeticExpr``.
    """
    text = text.strip()

    if text in KEYWORD_CONSTANTS:
        return LiteralExpr(value=KEYWORD_CONSTANTS[text])

    number = parse_number(text)
    if number is not None:
        return LiteralExpr(value=number)

    if _STRING_LITERAL_RE.match(text):
        return LiteralExpr(value=text[1:-1])

    m = _TIME_RE.match(text)
    if m:
        return TimeExpr(unit=TimeUnit(m.group(1)))

    call = parse_call(text)
    if call is not None:
        name, args = call
        if name in (PinRead.DIGITAL.value, PinRead.ANALOG.value) and args:
            return PinReadExpr(read=PinRead(name), pin=parse_expression(args[0]))
        if len(args) in BUILTIN_ARITY.get(name, ()):
            return BuiltinCallExpr(
                function_name=name,
                args=[parse_expression(a) for a in args],
            )

    if _IDENT_RE.match(text):
        return VariableRef(name=text)

    return ArithmeticExpr(source=text)


@functools.lru_cache(maxsize=4096)
def parse_condition(text: str) -> Condition:
    """Parse a condition.

    ``&&`` is checked before ``||`` and splits the whole text, so mixed
    chains group by whichever operator is checked first rather than by
    C precedence.
    """
    text = text.strip()

    if "&&" in text:
        return AllOf(operands=[parse_condition(p) for p in text.split("&&")])
    if "||" in text:
        return AnyOf(operands=[parse_condition(p) for p in text.split("||")])

    if text.startswith("!"):
        return NotCondition(operand=parse_condition(text[1:]))

    for op in CompareOp:
        idx = text.find(op.value)
        if idx != -1:
            return Comparison(
                op=op,
                left=parse_expression(text[:idx]),
                right=parse_expression(text[idx + len(op.value):]),
            )

    return Truthy(value=parse_expression(text))
