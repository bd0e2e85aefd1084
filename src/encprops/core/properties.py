"""Reader and writer for Java ``.properties`` text.

Format summary:

* ``#`` or ``!`` as the first non-blank character starts a comment line.
* The key ends at the first unescaped ``=``, ``:`` or whitespace; blanks
  around the separator are skipped.
* A line ending in an odd number of backslashes continues on the next line;
  leading blanks of the continuation line are dropped.
* Escapes ``\\t \\n \\r \\f \\uXXXX``; any other ``\\c`` stands for ``c``.
* Later duplicates replace earlier keys.
"""

from __future__ import annotations

import re
from typing import Iterable, Iterator, Mapping

_WHITESPACE = " \t\f"
_SEPARATORS = "=:"
_SIMPLE_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _logical_lines(text: str) -> Iterator[str]:
    """Yield logical lines, joining backslash continuations."""
    pending: str | None = None
    for raw_line in _LINE_BREAK.split(text):
        line = raw_line.lstrip(_WHITESPACE) if pending is not None else raw_line
        if pending is None:
            stripped = line.lstrip(_WHITESPACE)
            if not stripped or stripped[0] in "#!":
                continue
            line = stripped

        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = (pending or "") + line[:-1]
            continue

        yield (pending or "") + line
        pending = None

    if pending is not None:
        yield pending


def _unescape(text: str, lineno: int) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            digits = text[i + 2:i + 6]
            try:
                if len(digits) != 4:
                    raise ValueError(digits)
                out.append(chr(int(digits, 16)))
            except ValueError as exc:
                raise ValueError(f"Malformed \\uxxxx encoding on logical line {lineno}") from exc
            i += 6
            continue
        out.append(_SIMPLE_ESCAPES.get(nxt, nxt))
        i += 2
    return "".join(out)


def _split_key_value(line: str) -> tuple[str, str]:
    key_end = len(line)
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in _SEPARATORS or ch in _WHITESPACE:
            key_end = i
            break
        i += 1

    rest = line[key_end:].lstrip(_WHITESPACE)
    if rest and rest[0] in _SEPARATORS:
        rest = rest[1:].lstrip(_WHITESPACE)
    return line[:key_end], rest


def parse_properties(text: str) -> dict[str, str]:
    """Parse ``.properties`` *text* into an insertion-ordered dict.

    Raises:
        ValueError: On a malformed ``\\uXXXX`` escape.
    """
    props: dict[str, str] = {}
    for lineno, line in enumerate(_logical_lines(text), 1):
        raw_key, raw_value = _split_key_value(line)
        key = _unescape(raw_key, lineno)
        props[key] = _unescape(raw_value, lineno)
    return props


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for index, ch in enumerate(text):
        if ch == "\\":
            out.append("\\\\")
        elif ch == " " and (is_key or index == 0):
            out.append("\\ ")
        elif ch in "\t\n\r\f":
            out.append("\\" + {"\t": "t", "\n": "n", "\r": "r", "\f": "f"}[ch])
        elif ch in "=:#!":
            out.append("\\" + ch)
        else:
            out.append(ch)
    return "".join(out)


def dump_properties(props: Mapping[str, str], comments: Iterable[str] = ()) -> str:
    """Serialise *props* to ``.properties`` text.

    Non-ASCII characters are written as-is; the caller chooses the encoding.
    """
    lines = [f"#{comment}" for comment in comments]
    for key, value in props.items():
        lines.append(f"{_escape(key, is_key=True)}={_escape(value, is_key=False)}")
    return "\n".join(lines) + ("\n" if lines else "")
