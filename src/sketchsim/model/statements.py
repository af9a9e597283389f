"""Statement AST nodes for sketch source."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from .expressions import Condition, Expression


class AssignOp(str, Enum):
    SET = "="
    ADD = "+="
    SUB = "-="
    MUL = "*="
    DIV = "/="


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

class DelayStatement(BaseModel):
    """``delay(ms)`` or, with *microseconds*, ``delayMicroseconds(us)``."""

    kind: Literal["delay"] = "delay"
    duration: Expression
    microseconds: bool = False


# ---------------------------------------------------------------------------
# Serial
# ---------------------------------------------------------------------------

class SerialBegin(BaseModel):
    kind: Literal["serial_begin"] = "serial_begin"


class SerialPrint(BaseModel):
    """``Serial.print(value)`` / ``Serial.println(value)``."""

    kind: Literal["serial_print"] = "serial_print"
    value: Expression
    newline: bool = False


class SerialPrintf(BaseModel):
    kind: Literal["serial_printf"] = "serial_printf"
    format: str
    args: list[Expression] = []


# ---------------------------------------------------------------------------
# Pins
# ---------------------------------------------------------------------------

class PinModeStatement(BaseModel):
    """``pinMode(pin, MODE)``.  The mode is kept as written."""

    kind: Literal["pin_mode"] = "pin_mode"
    pin: Expression
    mode: str


class DigitalWrite(BaseModel):
    kind: Literal["digital_write"] = "digital_write"
    pin: Expression
    value: Expression


class AnalogWrite(BaseModel):
    kind: Literal["analog_write"] = "analog_write"
    pin: Expression
    value: Expression


class LedcWrite(BaseModel):
    """``ledcWrite(channel, duty)``.  The channel number is used as the pin."""

    kind: Literal["ledc_write"] = "ledc_write"
    channel: Expression
    duty: Expression


class ToneStatement(BaseModel):
    kind: Literal["tone"] = "tone"
    pin: Expression
    frequency: Expression
    duration: Expression | None = None


class NoToneStatement(BaseModel):
    kind: Literal["no_tone"] = "no_tone"
    pin: Expression


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

class Assignment(BaseModel):
    kind: Literal["assignment"] = "assignment"
    target: str
    op: AssignOp = AssignOp.SET
    value: Expression


class IncrementStatement(BaseModel):
    """``name++`` (delta 1) or ``name--`` (delta -1)."""

    kind: Literal["increment"] = "increment"
    target: str
    delta: int


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

class IfBranch(BaseModel):
    condition: Condition
    body: list[Statement]


class IfStatement(BaseModel):
    """An ``if`` / ``else if`` / ``else`` chain.

    *branches* may be empty for a lone ``else`` block, whose body then
    runs unconditionally.
    """

    kind: Literal["if"] = "if"
    branches: list[IfBranch] = []
    else_body: list[Statement] = []


class ForStatement(BaseModel):
    kind: Literal["for"] = "for"
    init: Statement
    condition: Condition
    step: Statement
    body: list[Statement]


class WhileStatement(BaseModel):
    kind: Literal["while"] = "while"
    condition: Condition
    body: list[Statement]


class CallStatement(BaseModel):
    """Bare call to a user-defined function.

    Resolved at run time; calls to unknown names do nothing.
    """

    kind: Literal["call"] = "call"
    function_name: str
    args: list[Expression] = []


class EmptyStatement(BaseModel):
    """Statement text outside the grammar.  Executes as a no-op."""

    kind: Literal["empty"] = "empty"
    source: str = ""


Statement = Annotated[
    Union[
        DelayStatement,
        SerialBegin,
        SerialPrint,
        SerialPrintf,
        PinModeStatement,
        DigitalWrite,
        AnalogWrite,
        LedcWrite,
        ToneStatement,
        NoToneStatement,
        Assignment,
        IncrementStatement,
        IfStatement,
        ForStatement,
        WhileStatement,
        CallStatement,
        EmptyStatement,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Statement references.
IfBranch.model_rebuild()
IfStatement.model_rebuild()
ForStatement.model_rebuild()
WhileStatement.model_rebuild()
