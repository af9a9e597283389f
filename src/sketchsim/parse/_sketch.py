"""Whole-file extraction: globals, ``setup``, ``loop`` and user functions."""

from __future__ import annotations

import logging
import re

from sketchsim.model.sketch import FunctionDef, Sketch

from ._source import brace_delta, extract_block, parse_value, strip_comments
from ._statements import TYPE_NAMES, parse_block

logger = logging.getLogger(__name__)


_DEFINE_RE = re.compile(r"^#define\s+(\w+)\s+(.+)$")
_SIGNATURE_RE = re.compile(r"^(?:\w+\s+)+\w+\s*\(")
_DECLARATION_RE = re.compile(
    r"^(?:(?:const|static|volatile)\s+)*" + TYPE_NAMES + r"\s+(\w+)\s*(?:=\s*(.+?))?\s*;"
)
_SETUP_RE = re.compile(r"void\s+setup\s*\(\s*\)\s*\{")
_LOOP_RE = re.compile(r"void\s+loop\s*\(\s*\)\s*\{")
_FUNCTION_RE = re.compile(
    r"(?:void|int|float|double|bool|boolean|String|long|unsigned|byte|char)"
    r"\s+(\w+)\s*\(([^)]*)\)\s*\{"
)


def parse_sketch(source: str) -> Sketch:
    """Parse sketch source into globals, ``setup``, ``loop`` and functions.

    Total over its input: a file without ``setup`` or ``loop`` gives
    empty sequences, unparseable lines become no-op statements.
    """
    code = strip_comments(source)

    sketch = Sketch(globals=_extract_globals(code))

    m = _SETUP_RE.search(code)
    if m:
        sketch.setup = parse_block(extract_block(code, m.end() - 1))

    m = _LOOP_RE.search(code)
    if m:
        sketch.loop = parse_block(extract_block(code, m.end() - 1))

    for m in _FUNCTION_RE.finditer(code):
        name = m.group(1)
        if name in ("setup", "loop"):
            continue
        sketch.functions[name] = FunctionDef(
            name=name,
            params=_param_names(m.group(2)),
            body=parse_block(extract_block(code, m.end() - 1)),
        )

    logger.debug(
        "Parsed sketch: %d globals, %d setup / %d loop statements, functions %s",
        len(sketch.globals), len(sketch.setup), len(sketch.loop), sorted(sketch.functions),
    )
    return sketch


def _extract_globals(code: str) -> dict[str, int | float | str]:
    """Collect ``#define`` constants and top-level variable initializers."""
    globals_: dict[str, int | float | str] = {}
    depth = 0
    for raw_line in code.split("\n"):
        line = raw_line.strip()
        at_top = depth == 0
        depth += brace_delta(line)
        if not at_top or not line:
            continue

        if line.startswith("#"):
            m = _DEFINE_RE.match(line)
            if m:
                globals_[m.group(1)] = parse_value(m.group(2), globals_)
            continue

        if _SIGNATURE_RE.match(line):
            continue

        m = _DECLARATION_RE.match(line)
        if m:
            init = m.group(2)
            globals_[m.group(1)] = parse_value(init, globals_) if init else 0
    return globals_


def _param_names(params: str) -> list[str]:
    """Last identifier of each comma-separated parameter; ``void`` means none."""
    names = []
    for param in params.split(","):
        tokens = param.strip().split()
        if not tokens:
            continue
        name = tokens[-1].strip("*&")
        if name and name != "void":
            names.append(name)
    return names
