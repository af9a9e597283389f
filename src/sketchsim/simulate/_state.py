"""Mutable interpreter state for one run."""

from __future__ import annotations

from dataclasses import dataclass, field

from sketchsim.model.sketch import FunctionDef, Sketch
from sketchsim.model.statements import Statement

from ._values import Value


@dataclass
class InterpreterState:
    """Globals, user functions and entry points of the current sketch.

    Built fresh from every parse; the executor mutates *globals* in place.
    """

    globals: dict[str, Value] = field(default_factory=dict)
    functions: dict[str, FunctionDef] = field(default_factory=dict)
    setup: list[Statement] = field(default_factory=list)
    loop: list[Statement] = field(default_factory=list)

    @classmethod
    def from_sketch(cls, sketch: Sketch) -> InterpreterState:
        return cls(
            globals=dict(sketch.globals),
            functions=dict(sketch.functions),
            setup=list(sketch.setup),
            loop=list(sketch.loop),
        )
