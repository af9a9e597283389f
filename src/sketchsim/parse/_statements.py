"""Statement text -> AST nodes.

Each statement unit produced by ``split_statements`` is matched against
the recognized forms in a fixed order: control flow, hardware and
serial calls, assignment, increment.  Anything else becomes an
``EmptyStatement`` that keeps its source text.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Callable

from sketchsim.model.expressions import LiteralExpr
from sketchsim.model.statements import (
    AnalogWrite,
    Assignment,
    AssignOp,
    CallStatement,
    DelayStatement,
    DigitalWrite,
    EmptyStatement,
    ForStatement,
    IfBranch,
    IfStatement,
    IncrementStatement,
    LedcWrite,
    NoToneStatement,
    PinModeStatement,
    SerialBegin,
    SerialPrint,
    SerialPrintf,
    Statement,
    ToneStatement,
    WhileStatement,
)

from ._expressions import parse_condition, parse_expression
from ._source import find_matching, parse_string, split_args, split_statements, split_top_level


TYPE_NAMES = (
    r"(?:unsigned\s+long|unsigned\s+int|unsigned\s+char|unsigned|long\s+long"
    r"|u?int(?:8|16|32|64)_t|int|float|double|boolean|bool|long|short|byte"
    r"|char|word|String|size_t)"
)

_ASSIGN_RE = re.compile(
    r"^(?:(?:const|static|volatile)\s+)*(?:" + TYPE_NAMES + r"\s+)?"
    r"(\w+)\s*([+\-*/]?=)\s*(.+)$",
    re.DOTALL,
)
_INCREMENT_RE = re.compile(r"^(\w+)\s*(\+\+|--)$")
_CALL_RE = re.compile(r"^([A-Za-z_]\w*(?:\.[A-Za-z_]\w*)?)\s*\(")
_PLAIN_NAME_RE = re.compile(r"^[A-Za-z_]\w*$")

_IF_RE = re.compile(r"^(?:else\s+)?if\s*\(")
_ELSE_RE = re.compile(r"^else\s*\{")
_FOR_RE = re.compile(r"^for\s*\(")
_WHILE_RE = re.compile(r"^while\s*\(")
_ELSE_WORD_RE = re.compile(r"^else\b")


def parse_block(text: str) -> list[Statement]:
    """Split a block body into units and parse each one."""
    return [parse_statement(unit) for unit in split_statements(text)]


@functools.lru_cache(maxsize=4096)
def parse_statement(text: str) -> Statement:
    """Parse one statement unit.  Never raises."""
    text = text.strip()
    if text.endswith(";") and "\n" not in text:
        text = text[:-1].rstrip()

    if _IF_RE.match(text) or _ELSE_RE.match(text):
        return _parse_if(text)
    if _FOR_RE.match(text):
        return _parse_for(text)
    if _WHILE_RE.match(text):
        return _parse_while(text)

    call = _parse_call_statement(text)
    if call is not None:
        return call

    m = _ASSIGN_RE.match(text)
    if m:
        return Assignment(
            target=m.group(1),
            op=AssignOp(m.group(2)),
            value=parse_expression(m.group(3)),
        )

    m = _INCREMENT_RE.match(text)
    if m:
        return IncrementStatement(target=m.group(1), delta=1 if m.group(2) == "++" else -1)

    return EmptyStatement(source=text)


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

def _split_braced(text: str) -> tuple[str, str] | None:
    """Return ``(body, rest)`` for text starting with ``{``."""
    if not text.startswith("{"):
        return None
    close_index = find_matching(text, 0)
    if close_index < 0:
        return None
    return text[1:close_index], text[close_index + 1:].strip()


def _split_header(text: str, header_re: re.Pattern[str]) -> tuple[str, str] | None:
    """Return ``(parenthesized header, text after it)`` for ``kw (...) ...``."""
    m = header_re.match(text)
    if m is None:
        return None
    open_index = m.end() - 1
    close_index = find_matching(text, open_index)
    if close_index < 0:
        return None
    return text[open_index + 1:close_index], text[close_index + 1:].strip()


def _parse_if(text: str) -> Statement:
    branches: list[IfBranch] = []
    else_body: list[Statement] = []
    rest = text

    while rest:
        header = _split_header(rest, _IF_RE)
        if header is not None:
            condition, after = header
            block = _split_braced(after)
            if block is None:
                break
            body, rest = block
            branches.append(IfBranch(condition=parse_condition(condition), body=parse_block(body)))
            if not _ELSE_WORD_RE.match(rest):
                break
            continue

        if _ELSE_RE.match(rest):
            block = _split_braced(rest[4:].lstrip())
            if block is not None:
                else_body = parse_block(block[0])
        break

    if not branches and not else_body:
        return EmptyStatement(source=text)
    return IfStatement(branches=branches, else_body=else_body)


def _parse_for(text: str) -> Statement:
    header = _split_header(text, _FOR_RE)
    if header is None:
        return EmptyStatement(source=text)
    clauses, after = header
    parts = split_top_level(clauses, ";")
    block = _split_braced(after)
    if len(parts) != 3 or not all(parts) or block is None:
        return EmptyStatement(source=text)
    init, condition, step = parts
    return ForStatement(
        init=parse_statement(init),
        condition=parse_condition(condition),
        step=parse_statement(step),
        body=parse_block(block[0]),
    )


def _parse_while(text: str) -> Statement:
    header = _split_header(text, _WHILE_RE)
    if header is None:
        return EmptyStatement(source=text)
    condition, after = header
    block = _split_braced(after)
    if not condition.strip() or block is None:
        return EmptyStatement(source=text)
    return WhileStatement(condition=parse_condition(condition), body=parse_block(block[0]))


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------

def _delay(args: list[str]) -> Statement | None:
    if not args:
        return None
    return DelayStatement(duration=parse_expression(args[0]))


def _delay_us(args: list[str]) -> Statement | None:
    if not args:
        return None
    return DelayStatement(duration=parse_expression(args[0]), microseconds=True)


def _serial_begin(args: list[str]) -> Statement | None:
    return SerialBegin()


def _serial_print(args: list[str], newline: bool = False) -> Statement | None:
    value = parse_expression(args[0]) if args else LiteralExpr(value="")
    return SerialPrint(value=value, newline=newline)


def _serial_println(args: list[str]) -> Statement | None:
    return _serial_print(args, newline=True)


def _serial_printf(args: list[str]) -> Statement | None:
    if not args:
        return None
    fmt = parse_string(args[0])
    if fmt is None:
        return None
    return SerialPrintf(format=fmt, args=[parse_expression(a) for a in args[1:]])


def _pin_mode(args: list[str]) -> Statement | None:
    if len(args) < 2:
        return None
    return PinModeStatement(pin=parse_expression(args[0]), mode=args[1].strip())


def _digital_write(args: list[str]) -> Statement | None:
    if len(args) < 2:
        return None
    return DigitalWrite(pin=parse_expression(args[0]), value=parse_expression(args[1]))


def _analog_write(args: list[str]) -> Statement | None:
    if len(args) < 2:
        return None
    return AnalogWrite(pin=parse_expression(args[0]), value=parse_expression(args[1]))


def _ledc_write(args: list[str]) -> Statement | None:
    if len(args) < 2:
        return None
    return LedcWrite(channel=parse_expression(args[0]), duty=parse_expression(args[1]))


def _tone(args: list[str]) -> Statement | None:
    if len(args) < 2:
        return None
    return ToneStatement(
        pin=parse_expression(args[0]),
        frequency=parse_expression(args[1]),
        duration=parse_expression(args[2]) if len(args) > 2 else None,
    )


def _no_tone(args: list[str]) -> Statement | None:
    if not args:
        return None
    return NoToneStatement(pin=parse_expression(args[0]))


_CALL_FORMS: dict[str, Callable[[list[str]], Statement | None]] = {
    "delay": _delay,
    "delayMicroseconds": _delay_us,
    "Serial.begin": _serial_begin,
    "Serial.print": _serial_print,
    "Serial.println": _serial_println,
    "Serial.printf": _serial_printf,
    "pinMode": _pin_mode,
    "digitalWrite": _digital_write,
    "analogWrite": _analog_write,
    "ledcWrite": _ledc_write,
    "tone": _tone,
    "noTone": _no_tone,
}


def _parse_call_statement(text: str) -> Statement | None:
    """Match ``name(args)`` / ``Obj.name(args)``; None if *text* is not a call."""
    m = _CALL_RE.match(text)
    if m is None:
        return None
    open_index = m.end() - 1
    close_index = find_matching(text, open_index)
    if close_index < 0:
        return None
    name = m.group(1)
    args = split_args(text[open_index + 1:close_index])

    form = _CALL_FORMS.get(name)
    if form is not None:
        return form(args) or EmptyStatement(source=text)
    if _PLAIN_NAME_RE.match(name):
        return CallStatement(function_name=name, args=[parse_expression(a) for a in args])
    return EmptyStatement(source=text)
