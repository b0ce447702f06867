"""Editor-surface types shared by the feature providers.

Results mirror the Language Server Protocol shapes so the LSP surface can send
them as-is with ``model_dump(by_alias=True, exclude_none=True)``.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _LSPModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(_LSPModel):
    """0-based line and character offset."""

    line: int
    character: int


class Range(_LSPModel):
    start: Position
    end: Position


class TextDocument:
    """An open document as the editor surface currently sees it."""

    def __init__(self, uri: str, text: str = "", version: int = 0) -> None:
        self.uri = uri
        self.text = text
        self.version = version
        self._lines = text.split("\n")

    def update(self, text: str, version: int | None = None) -> None:
        self.text = text
        self._lines = text.split("\n")
        if version is not None:
            self.version = version

    def line(self, number: int) -> str:
        if 0 <= number < len(self._lines):
            return self._lines[number].rstrip("\r")
        return ""


class MarkupContent(_LSPModel):
    kind: str = "markdown"
    value: str


class Hover(_LSPModel):
    """Hover content, rendered as consecutive markdown blocks."""

    contents: list[str] = Field(default_factory=list)

    @property
    def markdown(self) -> str:
        return "\n\n".join(self.contents)

    def to_lsp(self) -> dict:
        return {"contents": MarkupContent(value=self.markdown).model_dump(by_alias=True)}


class CompletionItemKind(IntEnum):
    FUNCTION = 3
    CLASS = 7


class TextEdit(_LSPModel):
    range: Range
    new_text: str


class CompletionItem(_LSPModel):
    label: str
    kind: CompletionItemKind
    detail: str = ""
    documentation: MarkupContent | None = None
    insert_text: str = ""
    text_edit: TextEdit | None = None


class CompletionList(_LSPModel):
    is_incomplete: bool = False
    items: list[CompletionItem] = Field(default_factory=list)


class ParameterInformation(_LSPModel):
    label: str


class SignatureInformation(_LSPModel):
    label: str
    documentation: MarkupContent | None = None
    parameters: list[ParameterInformation] = Field(default_factory=list)


class SignatureHelp(_LSPModel):
    signatures: list[SignatureInformation] = Field(default_factory=list)
    active_signature: int = 0
    active_parameter: int = 0


class EditorSurface(Protocol):
    """Where providers get registered (an LSP server, an embedded editor...)."""

    def register_hover_provider(self, provider) -> None: ...

    def register_completion_provider(self, provider) -> None: ...

    def register_definition_provider(self, provider) -> None: ...

    def register_signature_help_provider(self, provider) -> None: ...
