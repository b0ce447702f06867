"""Identifier shapes: hashes, dotted names and the token under the cursor.

Pure functions, no I/O. Columns are 0-based and a cursor at ``character`` sits
between ``line[character - 1]`` and ``line[character]``.
"""

from __future__ import annotations

import re

HASH_SIGIL = "#"

# The editor's own word detector stops at ".", which would turn
# "base.List.map" into "map" and lose the namespace.
_IDENT_CHARS = set("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_.")
_OPERATOR_CHARS = set("!$%&*+-/:<=>?@^|~∀")

_NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


def is_hash(identifier: str) -> bool:
    """Check if an identifier is a content hash (starts with #)."""
    return identifier.startswith(HASH_SIGIL)


def normalize_hash(hash_: str) -> str:
    """Normalize a hash to include the # prefix. Idempotent."""
    return hash_ if is_hash(hash_) else f"{HASH_SIGIL}{hash_}"


def last_segment(name: str) -> str:
    """The last dotted component of a name ("base.List.map" -> "map")."""
    return name.rsplit(".", 1)[-1]


def _is_ident(ch: str) -> bool:
    return ch in _IDENT_CHARS


def _run_around(line: str, character: int, allowed: set[str]) -> tuple[int, int] | None:
    """Find the [start, end) run of `allowed` chars touching the cursor."""
    if not line:
        return None
    character = max(0, min(character, len(line)))
    if character < len(line) and line[character] in allowed:
        anchor = character
    elif character > 0 and line[character - 1] in allowed:
        anchor = character - 1
    else:
        return None

    start = anchor
    while start > 0 and line[start - 1] in allowed:
        start -= 1
    end = anchor + 1
    while end < len(line) and line[end] in allowed:
        end += 1
    return start, end


def word_at_position(line: str, character: int) -> str | None:
    """Get the full dotted identifier under the cursor.

    Falls back to an operator run (``+:``, ``->``, ``@``) when the cursor is not
    on an identifier, so built-in syntax help can match operators too.
    """
    span = _run_around(line, character, _IDENT_CHARS)
    if span is None:
        span = _run_around(line, character, _OPERATOR_CHARS)
        if span is None:
            return None
        return line[span[0]:span[1]]

    start, end = span
    word = line[start:end].strip(".")
    if not word:
        return None

    # Unary minus on a numeric literal: "-42" but not "x-42"
    if (
        classify_numeric(word) is not None
        and start > 0
        and line[start - 1] == "-"
        and (start < 2 or not (_is_ident(line[start - 2]) or line[start - 2] == ")"))
    ):
        word = "-" + word
    return word


def dotted_prefix(line: str, character: int) -> str:
    """The dotted partial identifier ending at the cursor ("base.Li")."""
    character = max(0, min(character, len(line)))
    start = character
    while start > 0 and _is_ident(line[start - 1]):
        start -= 1
    return line[start:character]


def word_start(line: str, character: int) -> int:
    """Column where the last word fragment before the cursor begins."""
    character = max(0, min(character, len(line)))
    start = character
    while start > 0 and _is_ident(line[start - 1]) and line[start - 1] != ".":
        start -= 1
    return start


def word_end(line: str, character: int) -> int:
    """Column where the word fragment at the cursor ends."""
    end = max(0, min(character, len(line)))
    while end < len(line) and _is_ident(line[end]) and line[end] != ".":
        end += 1
    return end


def callee_at(line: str, character: int) -> str | None:
    """Name of the function whose argument list the cursor is in.

    Scans left for the innermost unmatched ``(`` and returns the dotted
    identifier immediately before it.
    """
    before = line[: max(0, min(character, len(line)))]
    depth = 0
    for i in range(len(before) - 1, -1, -1):
        ch = before[i]
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth == 0:
                end = i
                while end > 0 and before[end - 1].isspace():
                    end -= 1
                start = end
                while start > 0 and _is_ident(before[start - 1]):
                    start -= 1
                name = before[start:end].strip(".")
                return name or None
            depth -= 1
    return None


def in_string_literal(line: str, character: int) -> bool:
    """True if an odd number of unescaped double quotes precede the cursor."""
    before = line[: max(0, min(character, len(line)))]
    quotes = 0
    backslashes = 0
    for ch in before:
        if ch == "\\":
            backslashes += 1
            continue
        if ch == '"' and backslashes % 2 == 0:
            quotes += 1
        backslashes = 0
    return quotes % 2 == 1


def classify_numeric(token: str) -> str | None:
    """Classify a numeric literal by syntax alone: "float", "int", "nat" or None."""
    if not _NUMERIC_RE.match(token):
        return None
    if "." in token:
        return "float"
    if token.startswith("-"):
        return "int"
    return "nat"


def starts_uppercase(name: str) -> bool:
    """Capitalization check used when guessing type vs term."""
    return bool(name) and "A" <= name[0] <= "Z"
