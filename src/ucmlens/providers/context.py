"""The editor-intelligence service shared by all four providers.

One explicitly constructed object owns the caches, the in-flight map, the
current scope and the navigation observers, and is handed to each provider.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from ucmlens.cache import SingleFlight, TTLCache
from ucmlens.config import ProjectConfig
from ucmlens.models import DefinitionType, Scope, SearchResult
from ucmlens.providers.base import EditorSurface, Hover
from ucmlens.providers.completion import CompletionProvider
from ucmlens.providers.definition import DefinitionProvider
from ucmlens.providers.hover import HoverProvider
from ucmlens.providers.signature import SignatureHelpProvider
from ucmlens.resolution.definitions import DefinitionResolver
from ucmlens.store.base import DefinitionStore

logger = logging.getLogger(__name__)

DefinitionRequestHandler = Callable[[str, DefinitionType], None]


class NavigationEvents:
    """Observers for "open this definition" requests."""

    def __init__(self) -> None:
        self._handlers: list[DefinitionRequestHandler] = []

    def subscribe(self, handler: DefinitionRequestHandler) -> Callable[[], None]:
        """Register `handler`; returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def emit(self, name: str, type_: DefinitionType) -> int:
        """Notify every handler; returns how many were notified."""
        handlers = list(self._handlers)
        if not handlers:
            logger.debug("Definition requested for %r but nobody is listening", name)
        for handler in handlers:
            try:
                handler(name, type_)
            except Exception:
                logger.exception("Definition request handler failed for %r", name)
        return len(handlers)


class EditorIntelligence:
    """Hover, completion, definition and signature help over one definition store."""

    def __init__(
        self,
        store: DefinitionStore,
        scope: Scope | None = None,
        config: ProjectConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or ProjectConfig()
        cache_cfg = self.config.cache

        self.store = store
        self.scope = scope
        self.search = self.config.search
        self.hover_cache: TTLCache[Hover] = TTLCache(
            cache_cfg.hover_ttl, cache_cfg.max_entries, clock
        )
        self.completion_cache: TTLCache[list[SearchResult]] = TTLCache(
            cache_cfg.completion_ttl, cache_cfg.max_entries, clock
        )
        self.hover_flights: SingleFlight[Hover | None] = SingleFlight()
        self.navigation = NavigationEvents()
        self.resolver = DefinitionResolver(
            store,
            cache_cfg.definition_ttl,
            cache_cfg.max_entries,
            clock,
            fqn_search_limit=self.search.resolve_limit,
            hash_search_limit=self.search.hash_search_limit,
        )

        self.hover = HoverProvider(self)
        self.completion = CompletionProvider(self)
        self.definition = DefinitionProvider(self)
        self.signature_help = SignatureHelpProvider(self)

    @classmethod
    def from_config(cls, config: ProjectConfig) -> EditorIntelligence:
        """Build the service with a UCM-backed store and the configured scope."""
        from ucmlens.store.factory import create_store

        scope = None
        if config.scope.project:
            scope = Scope(project=config.scope.project, branch=config.scope.branch)
        return cls(create_store(config.store), scope=scope, config=config)

    def on_definition_requested(
        self, handler: DefinitionRequestHandler
    ) -> Callable[[], None]:
        return self.navigation.subscribe(handler)

    def set_scope(self, scope: Scope | None) -> None:
        """Switch project/branch. Cached answers belong to the old scope."""
        if scope == self.scope:
            return
        logger.info("Scope changed: %s -> %s", self.scope, scope)
        self.scope = scope
        self.clear_caches()

    def clear_caches(self) -> None:
        self.hover_cache.clear()
        self.completion_cache.clear()
        self.resolver.clear_cache()

    def register(self, surface: EditorSurface) -> None:
        """Register all four providers against an editor surface."""
        surface.register_hover_provider(self.hover)
        surface.register_completion_provider(self.completion)
        surface.register_definition_provider(self.definition)
        surface.register_signature_help_provider(self.signature_help)
        logger.info("Registered hover, completion, definition and signature help providers")

    async def close(self) -> None:
        await self.store.close()
