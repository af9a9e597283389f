"""Execution engine: async tree-walking interpreter for sketch statements.

The ``ExecutionEngine`` runs statement lists against a local scope dict
and the global table of an ``InterpreterState``.  Suspension (delays,
loop yields), serial output and the running flag belong to the runtime
it is given.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol

from sketchsim.model.runtime import SerialCategory
from sketchsim.model.statements import (
    AnalogWrite,
    Assignment,
    AssignOp,
    CallStatement,
    DelayStatement,
    DigitalWrite,
    EmptyStatement,
    ForStatement,
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
from sketchsim.parse import parse_statement

from ._evaluator import Evaluator, Scope
from ._pins import PinManager
from ._state import InterpreterState
from ._values import (
    SimulationError,
    Value,
    divide,
    expand_escapes,
    format_printf,
    is_truthy,
    normalize_number,
    to_number,
    to_text,
)

SERIAL_INIT_MESSAGE = "[System] Serial initialized"
TONE_DUTY = 128


class SketchRuntime(Protocol):
    """What the executor needs from the engine driving it."""

    @property
    def running(self) -> bool: ...

    async def delay(self, ms: float) -> None: ...

    async def pause(self) -> None: ...

    def emit(self, text: str, category: SerialCategory) -> None: ...


def apply_assign_op(op: AssignOp, prior: Value, value: Value) -> Value:
    """Combine a variable's prior value with *value* for ``op``.

    ``+=`` concatenates when either side is text; the other operators
    work on numbers.
    """
    if op == AssignOp.SET:
        return value
    if op == AssignOp.ADD:
        if isinstance(prior, str) or isinstance(value, str):
            return to_text(prior) + to_text(value)
        return normalize_number(prior + value)
    left, right = to_number(prior), to_number(value)
    if op == AssignOp.SUB:
        return normalize_number(left - right)
    if op == AssignOp.MUL:
        return normalize_number(left * right)
    if op == AssignOp.DIV:
        return divide(left, right)
    raise SimulationError(f"Unsupported assignment operator: {op}")


# ---------------------------------------------------------------------------
# ExecutionEngine
# ---------------------------------------------------------------------------

class ExecutionEngine:
    """Interpreter for the statements of one sketch.

    Parameters
    ----------
    state : InterpreterState
        Globals and user functions.  Mutated in place.
    pins : PinManager
        Pin table driven by hardware statements.
    runtime : SketchRuntime
        Provides the running flag, suspension and serial output.
    evaluator : Evaluator, optional
        Defaults to an evaluator over *state* and *pins* without a clock.
    while_yield_interval : int
        ``while`` loops yield once every this many iterations.
    """

    def __init__(
        self,
        state: InterpreterState,
        pins: PinManager,
        runtime: SketchRuntime,
        evaluator: Evaluator | None = None,
        while_yield_interval: int = 100,
    ) -> None:
        self.state = state
        self.pins = pins
        self.runtime = runtime
        self.evaluator = evaluator or Evaluator(state, pins)
        self.while_yield_interval = while_yield_interval

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    async def execute(self, statements: list[Statement], scope: Scope | None = None) -> None:
        """Run *statements* in order until the list ends or the run stops."""
        if scope is None:
            scope = {}
        for stmt in statements:
            if not self.runtime.running:
                return
            await self._exec_stmt(stmt, scope)

    async def execute_statement(self, stmt: Statement | str, scope: Scope | None = None) -> None:
        if isinstance(stmt, str):
            stmt = parse_statement(stmt)
        if not self.runtime.running:
            return
        await self._exec_stmt(stmt, scope if scope is not None else {})

    # -----------------------------------------------------------------------
    # Statement dispatch
    # -----------------------------------------------------------------------

    async def _exec_stmt(self, stmt: Statement, scope: Scope) -> None:
        handler = self._STMT_DISPATCH.get(stmt.kind)
        if handler is None:
            raise SimulationError(f"Unsupported statement kind: {stmt.kind}")
        await handler(self, stmt, scope)

    def _eval(self, expr, scope: Scope) -> Value:
        return self.evaluator.evaluate_expression(expr, scope)

    # Timing

    async def _exec_delay(self, stmt: DelayStatement, scope: Scope) -> None:
        duration = to_number(self._eval(stmt.duration, scope))
        await self.runtime.delay(duration / 1000 if stmt.microseconds else duration)

    # Serial

    async def _exec_serial_begin(self, stmt: SerialBegin, scope: Scope) -> None:
        self.runtime.emit(SERIAL_INIT_MESSAGE, SerialCategory.SYSTEM)

    async def _exec_serial_print(self, stmt: SerialPrint, scope: Scope) -> None:
        text = expand_escapes(to_text(self._eval(stmt.value, scope)))
        self.runtime.emit(text, SerialCategory.PRINTLN if stmt.newline else SerialCategory.PRINT)

    async def _exec_serial_printf(self, stmt: SerialPrintf, scope: Scope) -> None:
        args = [self._eval(a, scope) for a in stmt.args]
        self.runtime.emit(format_printf(stmt.format, args), SerialCategory.PRINTF)

    # Pins

    async def _exec_pin_mode(self, stmt: PinModeStatement, scope: Scope) -> None:
        self.pins.set_mode(self._eval(stmt.pin, scope), stmt.mode)

    async def _exec_digital_write(self, stmt: DigitalWrite, scope: Scope) -> None:
        self.pins.write_digital(self._eval(stmt.pin, scope), self._eval(stmt.value, scope))

    async def _exec_analog_write(self, stmt: AnalogWrite, scope: Scope) -> None:
        self.pins.write_analog(self._eval(stmt.pin, scope), self._eval(stmt.value, scope))

    async def _exec_ledc_write(self, stmt: LedcWrite, scope: Scope) -> None:
        self.pins.write_analog(self._eval(stmt.channel, scope), self._eval(stmt.duty, scope))

    async def _exec_tone(self, stmt: ToneStatement, scope: Scope) -> None:
        pin = self._eval(stmt.pin, scope)
        self._eval(stmt.frequency, scope)
        self.pins.write_analog(pin, TONE_DUTY)

    async def _exec_no_tone(self, stmt: NoToneStatement, scope: Scope) -> None:
        self.pins.write_analog(self._eval(stmt.pin, scope), 0)

    # Variables

    def _target_table(self, name: str, scope: Scope) -> Scope:
        return scope if name in scope else self.state.globals

    async def _exec_assignment(self, stmt: Assignment, scope: Scope) -> None:
        value = self._eval(stmt.value, scope)
        table = self._target_table(stmt.target, scope)
        prior = table.get(stmt.target, 0)
        table[stmt.target] = apply_assign_op(stmt.op, prior if is_truthy(prior) else 0, value)

    async def _exec_increment(self, stmt: IncrementStatement, scope: Scope) -> None:
        table = self._target_table(stmt.target, scope)
        prior = table.get(stmt.target, 0)
        op = AssignOp.ADD if stmt.delta > 0 else AssignOp.SUB
        table[stmt.target] = apply_assign_op(op, prior if is_truthy(prior) else 0, abs(stmt.delta))

    # Control flow

    async def _exec_if(self, stmt: IfStatement, scope: Scope) -> None:
        for branch in stmt.branches:
            if self.evaluator.evaluate_condition(branch.condition, scope):
                await self.execute(branch.body, scope)
                return
        await self.execute(stmt.else_body, scope)

    async def _exec_for(self, stmt: ForStatement, scope: Scope) -> None:
        await self.execute_statement(stmt.init, scope)
        while self.runtime.running and self.evaluator.evaluate_condition(stmt.condition, scope):
            await self.execute(stmt.body, scope)
            await self.execute_statement(stmt.step, scope)
            await self.runtime.pause()

    async def _exec_while(self, stmt: WhileStatement, scope: Scope) -> None:
        iterations = 0
        while self.runtime.running and self.evaluator.evaluate_condition(stmt.condition, scope):
            await self.execute(stmt.body, scope)
            iterations += 1
            if iterations % self.while_yield_interval == 0:
                await self.runtime.pause()

    async def _exec_call(self, stmt: CallStatement, scope: Scope) -> None:
        func = self.state.functions.get(stmt.function_name)
        if func is None:
            return
        # Callee sees the caller's locals unless a parameter shadows them
        local_scope = dict(scope)
        for i, param in enumerate(func.params):
            local_scope[param] = self._eval(stmt.args[i], scope) if i < len(stmt.args) else 0
        await self.execute(func.body, local_scope)

    async def _exec_empty(self, stmt: EmptyStatement, scope: Scope) -> None:
        pass

    _STMT_DISPATCH: dict[str, Callable[[ExecutionEngine, Statement, Scope], Awaitable[None]]] = {
        "delay": _exec_delay,
        "serial_begin": _exec_serial_begin,
        "serial_print": _exec_serial_print,
        "serial_printf": _exec_serial_printf,
        "pin_mode": _exec_pin_mode,
        "digital_write": _exec_digital_write,
        "analog_write": _exec_analog_write,
        "ledc_write": _exec_ledc_write,
        "tone": _exec_tone,
        "no_tone": _exec_no_tone,
        "assignment": _exec_assignment,
        "increment": _exec_increment,
        "if": _exec_if,
        "for": _exec_for,
        "while": _exec_while,
        "call": _exec_call,
        "empty": _exec_empty,
    }
