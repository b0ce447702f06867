"""Shared test fixtures for ucmlens."""

from __future__ import annotations

import asyncio

import pytest

from ucmlens.config import ProjectConfig
from ucmlens.exceptions import StoreError
from ucmlens.models import (
    DefinitionSummary,
    DefinitionType,
    Scope,
    SearchResult,
    SourceSegment,
)
from ucmlens.providers.context import EditorIntelligence
from ucmlens.store.base import DefinitionStore

MAP_HASH = "#abc123def456"
MAP_SIGNATURE = "(a ->{g} b) -> [a] ->{g} [b]"


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeStore(DefinitionStore):
    """In-memory definition store that records every call.

    Set `gate` to an unset asyncio.Event to hold calls in flight, and `error`
    to make every call fail.
    """

    def __init__(
        self,
        definitions: dict[str, DefinitionSummary] | None = None,
        search: dict[str, list[SearchResult]] | None = None,
    ) -> None:
        self.definitions = definitions or {}
        self.search = search or {}
        self.get_calls: list[str] = []
        self.get_scopes: list[Scope] = []
        self.find_calls: list[tuple[str, int]] = []
        self.gate: asyncio.Event | None = None
        self.error: StoreError | None = None
        self.closed = False

    async def get_definition(self, scope: Scope, name: str) -> DefinitionSummary | None:
        self.get_calls.append(name)
        self.get_scopes.append(scope)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.definitions.get(name)

    async def find_definitions(
        self, scope: Scope, query: str, limit: int
    ) -> list[SearchResult]:
        self.find_calls.append((query, limit))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.search.get(query, [])[:limit]

    async def close(self) -> None:
        self.closed = True


def make_term(
    name: str,
    hash_: str,
    source: str,
    signature: str | None = None,
    documentation: str | None = None,
) -> DefinitionSummary:
    return DefinitionSummary(
        name=name,
        hash=hash_,
        type=DefinitionType.TERM,
        signature=signature,
        segments=[SourceSegment(segment=source)],
        documentation=documentation,
    )


def make_type(name: str, hash_: str, source: str) -> DefinitionSummary:
    return DefinitionSummary(
        name=name,
        hash=hash_,
        type=DefinitionType.TYPE,
        segments=[SourceSegment(segment=source)],
    )


@pytest.fixture
def scope() -> Scope:
    return Scope(project="myproj", branch="main")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FakeStore:
    """A store with a handful of base definitions.

    Only full names load directly; short names go through search.
    """
    list_map = make_term(
        "base.List.map",
        MAP_HASH,
        f"base.List.map : {MAP_SIGNATURE}\nbase.List.map f as = todo",
        signature=MAP_SIGNATURE,
        documentation="Apply a function to every element of a list.",
    )
    optional = make_type(
        "base.Optional", "#opt111", "structural type base.Optional a = None | Some a"
    )
    exception = make_type(
        "base.Exception",
        "#exc222",
        "structural ability base.Exception where\n  raise : Failure -> x",
    )
    lib_map = make_term(
        "lib.base_1_0_0.List.map",
        "#libmap333",
        "lib.base_1_0_0.List.map : (a -> b) -> [a] -> [b]",
    )
    return FakeStore(
        definitions={
            "base.List.map": list_map,
            MAP_HASH: list_map,
            "base.Optional": optional,
            "base.Exception": exception,
            "lib.base_1_0_0.List.map": lib_map,
        },
        search={
            "map": [
                SearchResult(name="base.List.map", type=DefinitionType.TERM, hash=MAP_HASH),
                SearchResult(name="base.Map", type=DefinitionType.TYPE, hash="#mapty"),
            ],
            "base.List.map": [
                SearchResult(name="base.List.map", type=DefinitionType.TERM, hash=MAP_HASH),
            ],
            "Optional": [
                SearchResult(name="base.Optional", type=DefinitionType.TYPE, hash="#opt111"),
            ],
            "base.Li": [
                SearchResult(name="base.List", type=DefinitionType.TYPE, hash="#list1"),
                SearchResult(name="base.List.map", type=DefinitionType.TERM, hash=MAP_HASH),
            ],
        },
    )


@pytest.fixture
def intelligence(store: FakeStore, scope: Scope, clock: FakeClock) -> EditorIntelligence:
    return EditorIntelligence(store, scope=scope, config=ProjectConfig(), clock=clock)
