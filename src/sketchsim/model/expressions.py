"""Expression and condition AST nodes for sketch source.

Every expression string in a sketch is parsed once into one of these
nodes.  Text outside the recognized grammar becomes an
``ArithmeticExpr`` that keeps its source; it is resolved by textual
substitution when evaluated.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TimeUnit(str, Enum):
    MILLIS = "millis"
    MICROS = "micros"


class PinRead(str, Enum):
    DIGITAL = "digitalRead"
    ANALOG = "analogRead"


class CompareOp(str, Enum):
    """Comparison operators, in the order they are searched for."""

    GE = ">="
    LE = "<="
    NE = "!="
    EQ = "=="
    GT = ">"
    LT = "<"


# ---------------------------------------------------------------------------
# Value expressions
# ---------------------------------------------------------------------------

class LiteralExpr(BaseModel):
    """A constant: number, string, or a keyword resolved at parse time."""

    kind: Literal["literal"] = "literal"
    value: int | float | str


class VariableRef(BaseModel):
    """Reference to a variable by name (locals first, then globals)."""

    kind: Literal["variable_ref"] = "variable_ref"
    name: str


class TimeExpr(BaseModel):
    """``millis()`` or ``micros()``."""

    kind: Literal["time"] = "time"
    unit: TimeUnit


class PinReadExpr(BaseModel):
    kind: Literal["pin_read"] = "pin_read"
    read: PinRead
    pin: Expression


class BuiltinCallExpr(BaseModel):
    """Call to a library function such as ``map`` or ``constrain``."""

    kind: Literal["builtin_call"] = "builtin_call"
    function_name: str
    args: list[Expression] = []


class ArithmeticExpr(BaseModel):
    """Anything else.  Evaluated by best-effort arithmetic substitution."""

    kind: Literal["arithmetic"] = "arithmetic"
    source: str


Expression = Annotated[
    Union[
        LiteralExpr,
        VariableRef,
        TimeExpr,
        PinReadExpr,
        BuiltinCallExpr,
        ArithmeticExpr,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class AllOf(BaseModel):
    """``a && b && ...``"""

    kind: Literal["all"] = "all"
    operands: list[Condition]


class AnyOf(BaseModel):
    """``a || b || ...``"""

    kind: Literal["any"] = "any"
    operands: list[Condition]


class NotCondition(BaseModel):
    kind: Literal["not"] = "not"
    operand: Condition


class Comparison(BaseModel):
    kind: Literal["compare"] = "compare"
    op: CompareOp
    left: Expression
    right: Expression


class Truthy(BaseModel):
    """A bare value used as a condition."""

    kind: Literal["truthy"] = "truthy"
    value: Expression


Condition = Annotated[
    Union[
        AllOf,
        AnyOf,
        NotCondition,
        Comparison,
        Truthy,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Expression / Condition references.
PinReadExpr.model_rebuild()
BuiltinCallExpr.model_rebuild()
AllOf.model_rebuild()
AnyOf.model_rebuild()
NotCondition.model_rebuild()
Comparison.model_rebuild()
Truthy.model_rebuild()
