"""Turning definition summaries into hover and signature text."""

from __future__ import annotations

import re
from typing import Any

from ucmlens.models import DefinitionSummary, DefinitionType

_OPERATOR_CHARS = set("!$%&*+-/:<=>?@^|~")
_ABILITY_DECL_RE = re.compile(r"^\s*(?:(?:unique|structural)\s+)?ability\s", re.MULTILINE)
_OPENERS = {"(": ")", "[": "]", "{": "}"}


def code_block(text: str) -> str:
    return f"```unison\n{text}\n```"


def _top_level_colon(source: str) -> int:
    """Index of the first ``:`` outside brackets that is not part of an operator."""
    depth = 0
    for i, ch in enumerate(source):
        if ch in _OPENERS:
            depth += 1
        elif ch in _OPENERS.values():
            depth = max(0, depth - 1)
        elif ch == ":" and depth == 0:
            prev = source[i - 1] if i > 0 else " "
            nxt = source[i + 1] if i + 1 < len(source) else " "
            if prev not in _OPERATOR_CHARS and nxt not in _OPERATOR_CHARS:
                return i
    return -1


def extract_type_signature(source: str) -> str | None:
    """The type after the first top-level ``:`` of the source, up to end of line."""
    index = _top_level_colon(source)
    if index < 0:
        return None
    signature = source[index + 1:].split("\n", 1)[0].strip()
    return signature or None


def split_parameters(signature: str) -> list[str]:
    """Top-level argument types of a signature (everything but the result).

    ``Nat -> [a] ->{IO} Text`` gives ``["Nat", "[a]"]``.
    """
    parts: list[str] = []
    depth = 0
    current = ""
    i = 0
    while i < len(signature):
        ch = signature[i]
        if ch in _OPENERS:
            depth += 1
        elif ch in _OPENERS.values():
            depth = max(0, depth - 1)
        if depth == 0 and signature.startswith("->", i):
            parts.append(current.strip())
            current = ""
            i += 2
            # Ability requirements on the arrow: "->{IO, Exception}"
            if i < len(signature) and signature[i] == "{":
                close = signature.find("}", i)
                i = len(signature) if close < 0 else close + 1
            continue
        current += ch
        i += 1
    parts.append(current.strip())
    return [p for p in parts[:-1] if p]


def is_ability_source(source: str) -> bool:
    """Whether rendered type source declares an ability rather than a data type."""
    return bool(_ABILITY_DECL_RE.search(source))


def render_doc(node: Any) -> str:
    """Flatten a rich-doc tree into markdown-ish plain text."""
    if node is None:
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return " ".join(filter(None, (render_doc(child) for child in node)))
    if not isinstance(node, dict):
        return str(node)

    tag = node.get("tag", "")
    contents = node.get("contents")

    if tag == "Word":
        return str(contents)
    if tag in ("Paragraph", "Span"):
        return " ".join(filter(None, (render_doc(c) for c in contents or [])))
    if tag == "Join":
        return "".join(render_doc(c) for c in contents or [])
    if tag in ("UntitledSection", "Column"):
        return "\n\n".join(filter(None, (render_doc(c) for c in contents or [])))
    if tag == "Section":
        title, body = contents[0], contents[1] if len(contents) > 1 else []
        rendered = [f"**{render_doc(title)}**"] + [render_doc(c) for c in body]
        return "\n\n".join(filter(None, rendered))
    if tag == "Bold":
        return f"**{render_doc(contents)}**"
    if tag == "Italic":
        return f"_{render_doc(contents)}_"
    if tag == "Strikethrough":
        return f"~~{render_doc(contents)}~~"
    if tag == "Code":
        return f"`{render_doc(contents)}`"
    if tag == "CodeBlock":
        lang, body = (contents + [""])[:2] if isinstance(contents, list) else ("", contents)
        return f"```{lang}\n{render_doc(body)}\n```"
    if tag == "BulletedList":
        return "\n".join(f"- {render_doc(item)}" for item in contents or [])
    if tag == "NumberedList":
        start, items = contents[0], contents[1]
        first = start if isinstance(start, int) else 1
        return "\n".join(f"{first + n}. {render_doc(item)}" for n, item in enumerate(items))
    if tag == "Linebreak":
        return "\n"
    if tag == "Blankline":
        return "\n\n"
    if tag == "SectionBreak":
        return "---"
    return render_doc(contents)


def documentation_text(definition: DefinitionSummary) -> str | None:
    if definition.documentation:
        return definition.documentation
    if definition.doc:
        text = render_doc(definition.doc).strip()
        return text or None
    return None


def hover_contents(definition: DefinitionSummary) -> list[str]:
    """Markdown blocks for a hover. The hash is never shown."""
    contents: list[str] = []
    source = definition.source

    if definition.type == DefinitionType.TYPE:
        keyword = "ability" if is_ability_source(source) else "type"
        contents.append(code_block(f"{keyword} {definition.name}"))
    else:
        signature = definition.signature or extract_type_signature(source)
        if signature:
            contents.append(code_block(signature))
        elif definition.segments:
            contents.append(code_block(source))

    docs = documentation_text(definition)
    if docs:
        contents.append("---\n" + docs)
    return contents
