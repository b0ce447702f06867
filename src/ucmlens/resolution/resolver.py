"""Search-based resolution of short names to fully-qualified names."""

from __future__ import annotations

import logging

from ucmlens.cancellation import CancellationSignal
from ucmlens.exceptions import StoreError
from ucmlens.models import DefinitionSummary, FQNMatch, Scope, SearchResult
from ucmlens.naming.identifiers import last_segment
from ucmlens.store.base import DefinitionStore

logger = logging.getLogger(__name__)

RESOLVE_LIMIT = 10


def pick_exact_suffix(name: str, results: list[SearchResult]) -> SearchResult | None:
    """Pick the result `name` most plausibly refers to.

    An exact full-name hit wins, then the first result (in store order) whose
    last segment equals `name`, then the store's top-ranked result. None only
    when there are no results.
    """
    if not results:
        return None
    for result in results:
        if result.name == name:
            return result
    for result in results:
        if last_segment(result.name) == name:
            return result
    return results[0]


async def resolve_to_fqn(
    store: DefinitionStore,
    scope: Scope,
    name: str,
    limit: int = RESOLVE_LIMIT,
) -> FQNMatch | None:
    """Resolve a possibly-short name to an FQN using the store's fuzzy find.

    No caching happens here; callers layer their own.
    """
    try:
        results = await store.find_definitions(scope, name, limit)
    except StoreError as e:
        logger.warning("FQN search for %r failed: %s", name, e)
        return None

    match = pick_exact_suffix(name, results)
    if match is None:
        logger.debug("No search results for %r", name)
        return None

    logger.debug("Resolved %r to %s (%s)", name, match.name, match.type.value)
    return FQNMatch(fqn=match.name, hash=match.hash, type=match.type)


async def lookup_definition(
    store: DefinitionStore,
    scope: Scope,
    name: str,
    token: CancellationSignal | None = None,
    limit: int = RESOLVE_LIMIT,
) -> DefinitionSummary | None:
    """Load `name` directly, falling back to FQN resolution and a second lookup.

    Returns None as soon as `token` reports cancellation after an await.
    Store failures on the direct lookups propagate as ``StoreError``.
    """

    def cancelled() -> bool:
        return token is not None and token.is_cancellation_requested

    definition = await store.get_definition(scope, name)
    if cancelled():
        return None
    if definition is not None:
        return definition

    resolved = await resolve_to_fqn(store, scope, name, limit)
    if resolved is None or cancelled():
        return None

    definition = await store.get_definition(scope, resolved.fqn)
    if cancelled():
        return None
    return definition
