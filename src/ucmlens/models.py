"""Data models for definition resolution and navigation.

Hash is the canonical ID (content-addressed, immutable); the FQN is used for
display and tree navigation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DefinitionType(str, Enum):
    """Kinds of definitions the codebase API returns."""

    TERM = "term"
    TYPE = "type"


class Scope(BaseModel):
    """The project/branch every remote lookup is evaluated against."""

    model_config = ConfigDict(frozen=True)

    project: str
    branch: str

    def __str__(self) -> str:
        return f"{self.project}/{self.branch}"


class LibInfo(BaseModel):
    """Metadata parsed from the lib segment of a `lib.`-prefixed FQN.

    ``lib.base_1_0_0.List.map`` -> lib_name "base", version "1.0.0".
    ``lib.json_main.Json.parse`` -> lib_name "json", version "main" (branch).
    ``lib.base.List.map`` -> lib_name "base", no version.
    """

    model_config = ConfigDict(frozen=True)

    lib_name: str
    version: str = ""
    is_semantic_version: bool = False
    path_in_lib: str
    raw_lib_segment: str  # e.g. "base_1_0_0", kept for round-tripping


class ResolvedDefinition(BaseModel):
    """A fully resolved definition, ready for display and deduplication.

    Only ``hash`` takes part in equality: several names may point at the same
    content.
    """

    model_config = ConfigDict(frozen=True)

    hash: str  # always "#"-prefixed
    fqn: str
    short_name: str
    type: DefinitionType
    is_lib_dependency: bool = False
    lib_info: LibInfo | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResolvedDefinition):
            return NotImplemented
        return self.hash == other.hash

    def __hash__(self) -> int:
        return hash(self.hash)


class NavigationRequest(BaseModel):
    """What the user asked to open. Built per action, never persisted."""

    model_config = ConfigDict(frozen=True)

    identifier: str  # hash or FQN/short name
    type: DefinitionType = DefinitionType.TERM  # hint only, may be wrong
    source: str = ""  # "editor-click", "card-reference", "tree-click", "search"


class SourceSegment(BaseModel):
    """One annotated token of rendered source."""

    segment: str
    annotation: Any = None


class DefinitionSummary(BaseModel):
    """A definition as returned by the remote store. Read-only input."""

    model_config = ConfigDict(frozen=True)

    name: str
    hash: str
    type: DefinitionType
    signature: str | None = None
    segments: list[SourceSegment] = Field(default_factory=list)
    documentation: str | None = None
    doc: Any = None  # rich-doc tree for Doc terms
    tag: str | None = None  # "Plain", "Test" or "Doc"

    @property
    def source(self) -> str:
        return "".join(seg.segment for seg in self.segments)


class SearchResult(BaseModel):
    """A fuzzy-find hit."""

    model_config = ConfigDict(frozen=True)

    name: str  # full FQN
    type: DefinitionType
    hash: str


class FQNMatch(BaseModel):
    """The FQN a short name resolved to."""

    model_config = ConfigDict(frozen=True)

    fqn: str
    hash: str
    type: DefinitionType
