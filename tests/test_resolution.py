"""Tests for short-name resolution and the DefinitionResolver cache."""

from __future__ import annotations

import pytest

from conftest import MAP_HASH, FakeClock, FakeStore, make_term
from ucmlens.cancellation import CancellationToken
from ucmlens.exceptions import StoreError
from ucmlens.models import DefinitionType, NavigationRequest, Scope, SearchResult
from ucmlens.resolution.definitions import (
    DefinitionResolver,
    create_resolved_definition,
    find_best_match,
    score_match,
)
from ucmlens.resolution.resolver import lookup_definition, pick_exact_suffix, resolve_to_fqn


def _results(*names: str) -> list[SearchResult]:
    return [
        SearchResult(name=n, type=DefinitionType.TERM, hash=f"#{i}") for i, n in enumerate(names)
    ]


class TestPickExactSuffix:
    def test_exact_full_name_wins(self):
        match = pick_exact_suffix("foo", _results("ns1.foo", "ns2.sub.foo", "foo"))
        assert match.name == "foo"

    def test_first_suffix_match_in_store_order(self):
        match = pick_exact_suffix("foo", _results("bar.foobar", "ns1.foo", "ns2.foo"))
        assert match.name == "ns1.foo"

    def test_falls_back_to_top_result(self):
        match = pick_exact_suffix("foo", _results("base.food", "base.fool"))
        assert match.name == "base.food"

    def test_no_results(self):
        assert pick_exact_suffix("foo", []) is None


class TestResolveToFQN:
    @pytest.mark.asyncio
    async def test_resolves_short_name(self, store: FakeStore, scope: Scope):
        match = await resolve_to_fqn(store, scope, "map")
        assert match.fqn == "base.List.map"
        assert match.hash == MAP_HASH
        assert match.type == DefinitionType.TERM
        assert store.find_calls == [("map", 10)]

    @pytest.mark.asyncio
    async def test_no_results(self, store: FakeStore, scope: Scope):
        assert await resolve_to_fqn(store, scope, "zzz") is None

    @pytest.mark.asyncio
    async def test_store_failure_is_absorbed(self, store: FakeStore, scope: Scope):
        store.error = StoreError("down")
        assert await resolve_to_fqn(store, scope, "map") is None


class TestLookupDefinition:
    @pytest.mark.asyncio
    async def test_direct_hit(self, store: FakeStore, scope: Scope):
        definition = await lookup_definition(store, scope, "base.List.map")
        assert definition.name == "base.List.map"
        assert store.get_calls == ["base.List.map"]
        assert store.find_calls == []

    @pytest.mark.asyncio
    async def test_falls_back_to_search(self, store: FakeStore, scope: Scope):
        definition = await lookup_definition(store, scope, "map")
        assert definition.hash == MAP_HASH
        assert store.get_calls == ["map", "base.List.map"]
        assert store.find_calls == [("map", 10)]

    @pytest.mark.asyncio
    async def test_cancelled_after_first_call(self, store: FakeStore, scope: Scope):
        token = CancellationToken()
        token.cancel()
        assert await lookup_definition(store, scope, "map", token) is None
        assert store.get_calls == ["map"]
        assert store.find_calls == []

    @pytest.mark.asyncio
    async def test_direct_failure_propagates(self, store: FakeStore, scope: Scope):
        store.error = StoreError("down")
        with pytest.raises(StoreError):
            await lookup_definition(store, scope, "map")


class TestScoring:
    def test_scores(self):
        def score(query: str, name: str) -> int:
            return score_match(query, _results(name)[0])

        assert score("base.List.map", "base.List.map") == 100
        assert score("List.map", "base.Set.map") == 80
        assert score("List.map", "base.List.map") == 80
        assert score("map", "base.List.mapAccum") == 50
        assert score("ist", "base.List.fold") == 30
        assert score("zzz", "base.List.map") == 0

    def test_ends_with(self):
        assert score_match("List.map", _results("base.List.map")[0]) >= 70

    def test_best_match_prefers_higher_score(self):
        match = find_best_match(
            "api.createNote", _results("other.createNoteX", "notes.api.createNote")
        )
        assert match.name == "notes.api.createNote"

    def test_best_match_falls_back_to_first(self):
        assert find_best_match("zzz", _results("a.b", "c.d")).name == "a.b"
        assert find_best_match("zzz", []) is None

    def test_create_resolved_definition_for_lib(self):
        definition = make_term("List.map", "libhash", "List.map : x")
        resolved = create_resolved_definition(definition, "lib.base_1_0_0.List.map")
        assert resolved.hash == "#libhash"
        assert resolved.fqn == "lib.base_1_0_0.List.map"
        assert resolved.short_name == "base.List.map"
        assert resolved.is_lib_dependency
        assert resolved.lib_info.version == "1.0.0"


class TestDefinitionResolver:
    @pytest.mark.asyncio
    async def test_resolve_by_fqn_caches(self, store: FakeStore, scope: Scope):
        resolver = DefinitionResolver(store)
        resolved = await resolver.resolve("base.List.map", scope)
        assert resolved.hash == MAP_HASH
        assert resolved.fqn == "base.List.map"

        calls = (len(store.get_calls), len(store.find_calls))
        again = await resolver.resolve("base.List.map", scope)
        assert again == resolved
        assert (len(store.get_calls), len(store.find_calls)) == calls

    @pytest.mark.asyncio
    async def test_fqn_answered_through_hash(self, store: FakeStore, scope: Scope):
        resolver = DefinitionResolver(store)
        await resolver.resolve("base.List.map", scope)
        assert resolver.get_cached(MAP_HASH).fqn == "base.List.map"
        assert resolver.get_canonical_hash("base.List.map") == MAP_HASH
        assert resolver.cache_stats() == {"hash_entries": 1, "fqn_entries": 1}

    @pytest.mark.asyncio
    async def test_resolve_by_hash_recovers_full_name(self, scope: Scope):
        short = make_term("List.map", MAP_HASH, "List.map : x")
        store = FakeStore(
            definitions={MAP_HASH: short},
            search={
                "List.map": [
                    SearchResult(name="base.Set.map", type=DefinitionType.TERM, hash="#other"),
                    SearchResult(name="base.List.map", type=DefinitionType.TERM, hash=MAP_HASH),
                ]
            },
        )
        resolver = DefinitionResolver(store)
        resolved = await resolver.resolve(MAP_HASH, scope)
        assert resolved.fqn == "base.List.map"
        assert store.find_calls == [("List.map", 20)]

    @pytest.mark.asyncio
    async def test_direct_lookup_when_search_empty(self, scope: Scope):
        definition = make_term("scratch.helper", "#h1", "scratch.helper : Nat")
        store = FakeStore(definitions={"scratch.helper": definition})
        resolver = DefinitionResolver(store)
        resolved = await resolver.resolve("scratch.helper", scope)
        assert resolved.hash == "#h1"

    @pytest.mark.asyncio
    async def test_missing_and_unscoped(self, store: FakeStore, scope: Scope):
        resolver = DefinitionResolver(store)
        assert await resolver.resolve("nothing.here", scope) is None
        assert await resolver.resolve("", scope) is None
        assert await resolver.resolve("base.List.map", None) is None

    @pytest.mark.asyncio
    async def test_store_failure_returns_none(self, store: FakeStore, scope: Scope):
        store.error = StoreError("down")
        resolver = DefinitionResolver(store)
        assert await resolver.resolve("base.List.map", scope) is None

    @pytest.mark.asyncio
    async def test_request_type_hint_ignored(self, store: FakeStore, scope: Scope):
        resolver = DefinitionResolver(store)
        request = NavigationRequest(
            identifier="base.List.map", type=DefinitionType.TYPE, source="editor-click"
        )
        resolved = await resolver.resolve_request(request, scope)
        assert resolved.type == DefinitionType.TERM

    @pytest.mark.asyncio
    async def test_entries_expire(self, store: FakeStore, scope: Scope):
        clock = FakeClock()
        resolver = DefinitionResolver(store, ttl=300, clock=clock)
        await resolver.resolve("base.List.map", scope)
        clock.advance(301)
        assert resolver.get_cached("base.List.map") is None

    @pytest.mark.asyncio
    async def test_clear_cache(self, store: FakeStore, scope: Scope):
        resolver = DefinitionResolver(store)
        await resolver.resolve("base.List.map", scope)
        resolver.clear_cache()
        assert resolver.cache_stats() == {"hash_entries": 0, "fqn_entries": 0}

    def test_cache_definition(self, store: FakeStore):
        resolver = DefinitionResolver(store)
        resolved = resolver.cache_definition(make_term("a.b", "xyz", "a.b : Nat"))
        assert resolved.hash == "#xyz"
        assert resolver.get_cached("a.b") == resolved
