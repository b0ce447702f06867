"""Remote definition store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ucmlens.models import DefinitionSummary, Scope, SearchResult


class DefinitionStore(ABC):
    """Abstract base for the codebase API that owns the definitions.

    Implementations raise ``StoreError`` on transport or protocol failures and
    return None / [] when nothing matches.
    """

    @abstractmethod
    async def get_definition(self, scope: Scope, name: str) -> DefinitionSummary | None:
        """Load one definition by FQN, short name or hash."""
        ...

    @abstractmethod
    async def find_definitions(
        self, scope: Scope, query: str, limit: int
    ) -> list[SearchResult]:
        """Fuzzy-find definitions, best match first."""
        ...

    async def close(self) -> None:
        """Release any held connections."""
