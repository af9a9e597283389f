"""Text-level helpers: comments, balanced blocks, statement units, values.

None of these raise on malformed input; unbalanced text simply yields
empty blocks or fewer statements.
"""

from __future__ import annotations

import re


_LINE_COMMENT_RE = re.compile(r"//.*$", re.MULTILINE)
_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

_CONTROL_RE = re.compile(r"^(?:if|else if|else|for|while)\b")
_IF_RE = re.compile(r"^if\b")
_ELSE_RE = re.compile(r"^else\b")

_NUMBER_RE = re.compile(r"^[-+]?\d+(?:\.\d+)?$")
_HEX_RE = re.compile(r"^0[xX][0-9a-fA-F]+$")
_STRING_RE = re.compile(r'^"((?:[^"\\]|\\.)*)"$')

_PAIRS = {"(": ")", "{": "}", "[": "]"}
_QUOTES = "\"'"


def strip_comments(code: str) -> str:
    """Remove ``//`` line comments and ``/* */`` block comments."""
    code = _LINE_COMMENT_RE.sub("", code)
    return _BLOCK_COMMENT_RE.sub("", code)


def find_matching(text: str, open_index: int) -> int:
    """Return the index of the bracket closing ``text[open_index]``, or -1.

    Brackets inside string and char literals are ignored.
    """
    opener = text[open_index]
    closer = _PAIRS[opener]
    depth = 0
    quote: str | None = None
    i = open_index
    while i < len(text):
        ch = text[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def extract_block(code: str, start: int) -> str:
    """Return the trimmed body of the first ``{...}`` block at or after *start*.

    Returns ``""`` when there is no opening brace or it is never closed.
    """
    open_index = code.find("{", start)
    if open_index < 0:
        return ""
    close_index = find_matching(code, open_index)
    if close_index < 0:
        return ""
    return code[open_index + 1:close_index].strip()


def brace_delta(line: str) -> int:
    """Opening minus closing braces on *line*, outside literals."""
    delta = 0
    quote: str | None = None
    escaped = False
    for ch in line:
        if quote is not None:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
        elif ch in _QUOTES:
            quote = ch
        elif ch == "{":
            delta += 1
        elif ch == "}":
            delta -= 1
    return delta


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on *separator* where it is outside brackets and literals.

    Parts are stripped; empty parts are kept.
    """
    parts: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False
    current: list[str] = []
    for ch in text:
        if quote is not None:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in _QUOTES:
            quote = ch
        elif ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append("".join(current).strip())
    return parts


def split_args(text: str) -> list[str]:
    """Split a call's argument text on top-level commas.

    A trailing empty argument is dropped, so ``""`` gives ``[]``.
    """
    args = split_top_level(text, ",")
    if args and not args[-1]:
        args.pop()
    return args


def split_statements(block: str) -> list[str]:
    """Cut a block body into statement units.

    Blank lines and bare braces are dropped.  A line starting with
    ``if``/``else if``/``else``/``for``/``while`` absorbs the following
    lines until its braces balance and forms one unit; an ``else`` unit
    directly after an ``if`` unit is joined to it.  Other lines are cut
    on top-level ``;``.
    """
    statements: list[str] = []
    lines = block.split("\n")
    i = 0
    while i < len(lines):
        line = lines[i].strip()
        i += 1
        if not line or line in ("{", "}"):
            continue

        if _CONTROL_RE.match(line):
            unit = [line]
            depth = brace_delta(line)
            # Opening brace on its own line, or a braceless single-line body
            if "{" not in line and i < len(lines):
                unit.append(lines[i].strip())
                depth += brace_delta(lines[i])
                i += 1
            while depth > 0 and i < len(lines):
                nxt = lines[i].strip()
                i += 1
                unit.append(nxt)
                depth += brace_delta(nxt)
            text = "\n".join(unit)
            if _ELSE_RE.match(text) and statements and _IF_RE.match(statements[-1]):
                statements[-1] = statements[-1] + "\n" + text
            else:
                statements.append(text)
            continue

        statements.extend(part for part in split_top_level(line, ";") if part)
    return statements


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------

def parse_number(text: str) -> int | float | None:
    """Parse a decimal or ``0x`` literal; None if *text* is not one."""
    if _NUMBER_RE.match(text):
        return float(text) if "." in text else int(text)
    if _HEX_RE.match(text):
        return int(text, 16)
    return None


def parse_string(text: str) -> str | None:
    """Unquote a double-quoted literal; None if *text* is not exactly one."""
    m = _STRING_RE.match(text)
    if m is None:
        return None
    return m.group(1)


def parse_value(text: str, known: dict[str, object] | None = None) -> int | float | str:
    """Parse an initializer or ``#define`` value.

    - ``true``/``HIGH`` -> 1, ``false``/``LOW`` -> 0
    - decimal or ``0x`` literal -> number
    - ``"text"`` -> ``text``
    - name of an already-known global -> its value
    - anything else -> 0
    """
    text = text.strip()
    if text.endswith(";"):
        text = text[:-1].strip()

    if text in ("true", "HIGH"):
        return 1
    if text in ("false", "LOW"):
        return 0

    number = parse_number(text)
    if number is not None:
        return number

    string = parse_string(text)
    if string is not None:
        return string

    if known and text in known:
        value = known[text]
        if isinstance(value, (int, float, str)):
            return value
    return 0
