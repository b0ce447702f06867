"""Central resolver turning hashes and FQNs into ResolvedDefinitions.

Results are cached by hash (the canonical ID), with an FQN -> hash reverse map
so a name that was already resolved can be answered without the store.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ucmlens.cache import TTLCache
from ucmlens.exceptions import StoreError
from ucmlens.models import (
    DefinitionSummary,
    NavigationRequest,
    ResolvedDefinition,
    Scope,
    SearchResult,
)
from ucmlens.naming.identifiers import is_hash, last_segment, normalize_hash
from ucmlens.naming.libinfo import get_display_name, is_lib_fqn, parse_lib_info
from ucmlens.store.base import DefinitionStore

logger = logging.getLogger(__name__)

DEFINITION_TTL = 5 * 60.0  # definitions are content-addressed, so stable
FQN_SEARCH_LIMIT = 10
HASH_SEARCH_LIMIT = 20


def score_match(query: str, result: SearchResult) -> int:
    """Rank how well a search result's name matches the query."""
    query_lower = query.lower()
    query_last = last_segment(query).lower()
    name_lower = result.name.lower()
    name_last = last_segment(result.name).lower()

    if name_lower == query_lower:
        return 100
    if name_last == query_last:
        return 80
    if name_lower.endswith(query_lower):
        return 70
    if name_last.startswith(query_last):
        return 50
    if query_lower in name_lower:
        return 30
    return 0


def find_best_match(query: str, results: list[SearchResult]) -> SearchResult | None:
    """Highest-scoring result; ties keep store order. First result if none score."""
    if not results:
        return None
    best = max(results, key=lambda r: score_match(query, r))
    return best if score_match(query, best) > 0 else results[0]


def create_resolved_definition(
    definition: DefinitionSummary, override_fqn: str | None = None
) -> ResolvedDefinition:
    """Build a ResolvedDefinition, preferring a search-provided full FQN.

    The store's definition name is often relative ("api.createNote") while
    search results carry the full path ("notes.api.createNote").
    """
    fqn = override_fqn or definition.name
    lib_info = parse_lib_info(fqn)
    resolved = ResolvedDefinition(
        hash=normalize_hash(definition.hash),
        fqn=fqn,
        short_name=fqn,
        type=definition.type,
        is_lib_dependency=is_lib_fqn(fqn),
        lib_info=lib_info,
    )
    if lib_info:
        resolved = resolved.model_copy(update={"short_name": get_display_name(resolved)})
    return resolved


class DefinitionResolver:
    """Resolve identifiers (hash or FQN) with a session-wide cache."""

    def __init__(
        self,
        store: DefinitionStore,
        ttl: float = DEFINITION_TTL,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        fqn_search_limit: int = FQN_SEARCH_LIMIT,
        hash_search_limit: int = HASH_SEARCH_LIMIT,
    ) -> None:
        self.store = store
        self.fqn_search_limit = fqn_search_limit
        self.hash_search_limit = hash_search_limit
        self._hash_cache: TTLCache[ResolvedDefinition] = TTLCache(ttl, max_entries, clock)
        self._fqn_to_hash: TTLCache[str] = TTLCache(ttl, max_entries, clock)

    async def resolve(self, identifier: str, scope: Scope | None) -> ResolvedDefinition | None:
        """Resolve a hash (``#abc…``) or FQN (``base.List.map``).

        Returns None when not found or when the store fails.
        """
        if not identifier or scope is None:
            return None

        cached = self.get_cached(identifier)
        if cached:
            logger.debug("Definition cache hit for %r", identifier)
            return cached

        logger.debug("Resolving definition %r in %s", identifier, scope)
        try:
            if is_hash(identifier):
                return await self._resolve_by_hash(identifier, scope)
            return await self._resolve_by_fqn(identifier, scope)
        except StoreError as e:
            logger.warning("Definition resolution failed for %r: %s", identifier, e)
            return None

    async def resolve_request(
        self, request: NavigationRequest, scope: Scope | None
    ) -> ResolvedDefinition | None:
        """Resolve a navigation request. Its type hint is ignored; the store decides."""
        logger.debug("Navigation request %r from %s", request.identifier, request.source or "?")
        return await self.resolve(request.identifier, scope)

    async def _resolve_by_hash(self, hash_: str, scope: Scope) -> ResolvedDefinition | None:
        definition = await self.store.get_definition(scope, hash_)
        if definition is None:
            logger.debug("Hash not found: %s", hash_)
            return None

        # The store answers with a relative name; search for it to recover the
        # full FQN, matching by hash where possible.
        full_fqn: str | None = None
        try:
            results = await self.store.find_definitions(
                scope, definition.name, self.hash_search_limit
            )
        except StoreError as e:
            logger.warning("FQN search failed, using store name: %s", e)
            results = []

        if results:
            target = normalize_hash(definition.hash)
            by_hash = next((r for r in results if normalize_hash(r.hash) == target), None)
            if by_hash:
                full_fqn = by_hash.name
            else:
                best = find_best_match(definition.name, results)
                full_fqn = best.name if best else None

        resolved = create_resolved_definition(definition, full_fqn)
        self._remember(resolved)
        return resolved

    async def _resolve_by_fqn(self, fqn: str, scope: Scope) -> ResolvedDefinition | None:
        # Always search first: the input may be partial ("api.createNote").
        results = await self.store.find_definitions(scope, fqn, self.fqn_search_limit)

        if not results:
            logger.debug("No search results for %r, trying direct lookup", fqn)
            definition = await self.store.get_definition(scope, fqn)
            if definition is None:
                return None
            resolved = create_resolved_definition(definition, fqn)
            self._remember(resolved)
            return resolved

        match = find_best_match(fqn, results)
        if match is None:
            return None

        definition = await self.store.get_definition(scope, match.name)
        if definition is None:
            definition = await self.store.get_definition(scope, normalize_hash(match.hash))
        if definition is None:
            logger.warning("Failed to load definition for match %s", match.name)
            return None

        resolved = create_resolved_definition(definition, match.name)
        self._remember(resolved)
        return resolved

    def _remember(self, resolved: ResolvedDefinition) -> None:
        self._hash_cache.set(resolved.hash, resolved)
        self._fqn_to_hash.set(resolved.fqn, resolved.hash)
        logger.debug("Cached definition %s -> %s", resolved.fqn, resolved.hash)

    def get_cached(self, identifier: str) -> ResolvedDefinition | None:
        """Look up a hash or a previously resolved FQN without touching the store."""
        if is_hash(identifier):
            return self._hash_cache.get(normalize_hash(identifier))
        hash_ = self._fqn_to_hash.get(identifier)
        if hash_ is None:
            return None
        return self._hash_cache.get(hash_)

    def cache_definition(self, definition: DefinitionSummary) -> ResolvedDefinition:
        """Warm the cache with a definition loaded elsewhere."""
        resolved = create_resolved_definition(definition)
        self._remember(resolved)
        return resolved

    def get_canonical_hash(self, identifier: str) -> str | None:
        """Canonical hash for an identifier if it is a hash or a known FQN."""
        if is_hash(identifier):
            return normalize_hash(identifier)
        return self._fqn_to_hash.get(identifier)

    def clear_cache(self) -> None:
        stats = self.cache_stats()
        self._hash_cache.clear()
        self._fqn_to_hash.clear()
        logger.info(
            "Definition cache cleared (%d hashes, %d names)",
            stats["hash_entries"],
            stats["fqn_entries"],
        )

    def cache_stats(self) -> dict[str, int]:
        return {
            "hash_entries": len(self._hash_cache),
            "fqn_entries": len(self._fqn_to_hash),
        }
