"""Parsed sketch: globals, entry points and user functions."""

from __future__ import annotations

from pydantic import BaseModel

from .statements import Statement


class FunctionDef(BaseModel):
    """A user-defined function.  Return values are not modelled."""

    name: str
    params: list[str] = []
    body: list[Statement] = []


class Sketch(BaseModel):
    """The result of parsing one source file.

    *globals* holds ``#define`` constants and top-level variable
    initializers; *setup* runs once and *loop* runs repeatedly.
    """

    globals: dict[str, int | float | str] = {}
    setup: list[Statement] = []
    loop: list[Statement] = []
    functions: dict[str, FunctionDef] = {}
