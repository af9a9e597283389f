"""Sketch source -> AST.

Entry point::

    from sketchsim.parse import parse_sketch

    sketch = parse_sketch(source)
    sketch.globals["LED_PIN"]
    sketch.loop[0].kind
"""

from ._expressions import parse_condition, parse_expression
from ._sketch import parse_sketch
from ._source import (
    extract_block,
    parse_value,
    split_args,
    split_statements,
    strip_comments,
)
from ._statements import parse_block, parse_statement

__all__ = [
    "extract_block",
    "parse_block",
    "parse_condition",
    "parse_expression",
    "parse_sketch",
    "parse_statement",
    "parse_value",
    "split_args",
    "split_statements",
    "strip_comments",
]
