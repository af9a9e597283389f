"""Expression and condition evaluation.

Evaluation is total: text outside the recognized grammar evaluates to 0
instead of raising.  Errors from the pin table or the clock still
propagate.
"""

from __future__ import annotations

import ast
import operator
import random
import re
from collections.abc import Callable

from sketchsim.model.expressions import (
    AllOf,
    AnyOf,
    ArithmeticExpr,
    BuiltinCallExpr,
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
from sketchsim.parse import parse_condition, parse_expression

from ._builtins import STDLIB_FUNCTIONS, random_between
from ._clock import SimulationClock
from ._pins import PinManager
from ._state import InterpreterState
from ._values import (
    SimulationError,
    Value,
    c_remainder,
    divide,
    is_truthy,
    loose_compare,
    normalize_number,
    to_number,
    to_text,
)

Scope = dict[str, Value]


# ---------------------------------------------------------------------------
# Restricted arithmetic
# ---------------------------------------------------------------------------

_ARITHMETIC_TEXT_RE = re.compile(r"^[\d\s+\-*/%().]+$")

_KEYWORD_SUBSTITUTIONS = (
    (re.compile(r"\bHIGH\b"), "1"),
    (re.compile(r"\bLOW\b"), "0"),
    (re.compile(r"\btrue\b"), "1"),
    (re.compile(r"\bfalse\b"), "0"),
)

_BINOP_MAP: dict[type, Callable[[int | float, int | float], int | float]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: divide,
    ast.Mod: c_remainder,
}

_UNARYOP_MAP: dict[type, Callable[[int | float], int | float]] = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
}


def _eval_arithmetic_node(node: ast.AST) -> int | float:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARYOP_MAP:
        return _UNARYOP_MAP[type(node.op)](_eval_arithmetic_node(node.operand))
    if isinstance(node, ast.BinOp) and type(node.op) in _BINOP_MAP:
        left = _eval_arithmetic_node(node.left)
        right = _eval_arithmetic_node(node.right)
        return _BINOP_MAP[type(node.op)](left, right)
    raise SimulationError(f"Unsupported arithmetic construct: {type(node).__name__}")


def evaluate_arithmetic(text: str) -> int | float:
    """Evaluate digits, ``+ - * / %`` and parentheses.

    Raises ``SimulationError`` or ``SyntaxError`` for anything else.
    """
    if not _ARITHMETIC_TEXT_RE.match(text):
        raise SimulationError(f"Not an arithmetic expression: {text!r}")
    tree = ast.parse(text.strip(), mode="eval")
    return normalize_number(_eval_arithmetic_node(tree.body))


# ---------------------------------------------------------------------------
# Evaluator
# ---------------------------------------------------------------------------

class Evaluator:
    """Resolves expressions to values and conditions to booleans.

    Parameters
    ----------
    state : InterpreterState
        Supplies the global variable table.
    pins : PinManager
        Target of ``digitalRead`` / ``analogRead``.
    clock : SimulationClock, optional
        Source of ``millis()`` / ``micros()``; both read 0 without one.
    rng : random.Random, optional
        Source for ``random()``.
    """

    def __init__(
        self,
        state: InterpreterState,
        pins: PinManager,
        clock: SimulationClock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.state = state
        self.pins = pins
        self.clock = clock
        self.rng = rng or random.Random()

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def evaluate_expression(self, expr: Expression | str, scope: Scope | None = None) -> Value:
        if isinstance(expr, str):
            expr = parse_expression(expr)
        return self._eval(expr, scope if scope is not None else {})

    def evaluate_condition(self, cond: Condition | str, scope: Scope | None = None) -> bool:
        if isinstance(cond, str):
            cond = parse_condition(cond)
        return self._test(cond, scope if scope is not None else {})

    def lookup(self, name: str, scope: Scope) -> Value | None:
        """Locals first, then globals; None if the name is unknown."""
        if name in scope:
            return scope[name]
        return self.state.globals.get(name)

    # -----------------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------------

    def _eval(self, expr: Expression, scope: Scope) -> Value:
        handler = self._EXPR_DISPATCH.get(expr.kind)
        if handler is None:
            raise SimulationError(f"Unsupported expression kind: {expr.kind}")
        return handler(self, expr, scope)

    def _eval_literal(self, expr: LiteralExpr, scope: Scope) -> Value:
        return expr.value

    def _eval_variable_ref(self, expr: VariableRef, scope: Scope) -> Value:
        value = self.lookup(expr.name, scope)
        return 0 if value is None else value

    def _eval_time(self, expr: TimeExpr, scope: Scope) -> Value:
        if self.clock is None:
            return 0
        if expr.unit == TimeUnit.MICROS:
            return self.clock.micros()
        return self.clock.millis()

    def _eval_pin_read(self, expr: PinReadExpr, scope: Scope) -> Value:
        pin = self._eval(expr.pin, scope)
        if expr.read == PinRead.ANALOG:
            return self.pins.read_analog(pin)
        return self.pins.read_digital(pin)

    def _eval_builtin_call(self, expr: BuiltinCallExpr, scope: Scope) -> Value:
        args = [to_number(self._eval(a, scope)) for a in expr.args]
        if expr.function_name == "random":
            return random_between(self.rng, *args)
        fn = STDLIB_FUNCTIONS.get(expr.function_name)
        if fn is None:
            raise SimulationError(f"Unknown function: {expr.function_name}")
        return fn(*args)

    def _eval_arithmetic(self, expr: ArithmeticExpr, scope: Scope) -> Value:
        text = self._substitute(expr.source, scope)
        try:
            return evaluate_arithmetic(text)
        except (SimulationError, SyntaxError, ValueError, TypeError, ArithmeticError, RecursionError):
            return 0

    def _substitute(self, text: str, scope: Scope) -> str:
        """Replace numeric variables (longest names first) and keywords."""
        values = {**self.state.globals, **scope}
        for name in sorted(values, key=len, reverse=True):
            value = values[name]
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                replacement = to_text(value)
                text = re.sub(rf"\b{re.escape(name)}\b", lambda _m: replacement, text)
        for pattern, replacement in _KEYWORD_SUBSTITUTIONS:
            text = pattern.sub(replacement, text)
        return text

    _EXPR_DISPATCH: dict[str, Callable[[Evaluator, Expression, Scope], Value]] = {
        "literal": _eval_literal,
        "variable_ref": _eval_variable_ref,
        "time": _eval_time,
        "pin_read": _eval_pin_read,
        "builtin_call": _eval_builtin_call,
        "arithmetic": _eval_arithmetic,
    }

    # -----------------------------------------------------------------------
    # Conditions
    # -----------------------------------------------------------------------

    def _test(self, cond: Condition, scope: Scope) -> bool:
        handler = self._COND_DISPATCH.get(cond.kind)
        if handler is None:
            raise SimulationError(f"Unsupported condition kind: {cond.kind}")
        return handler(self, cond, scope)

    def _test_all(self, cond: AllOf, scope: Scope) -> bool:
        return all(self._test(c, scope) for c in cond.operands)

    def _test_any(self, cond: AnyOf, scope: Scope) -> bool:
        return any(self._test(c, scope) for c in cond.operands)

    def _test_not(self, cond: NotCondition, scope: Scope) -> bool:
        return not self._test(cond.operand, scope)

    def _test_compare(self, cond: Comparison, scope: Scope) -> bool:
        left = self._eval(cond.left, scope)
        right = self._eval(cond.right, scope)
        return loose_compare(cond.op.value, left, right)

    def _test_truthy(self, cond: Truthy, scope: Scope) -> bool:
        return is_truthy(self._eval(cond.value, scope))

    _COND_DISPATCH: dict[str, Callable[[Evaluator, Condition, Scope], bool]] = {
        "all": _test_all,
        "any": _test_any,
        "not": _test_not,
        "compare": _test_compare,
        "truthy": _test_truthy,
    }
