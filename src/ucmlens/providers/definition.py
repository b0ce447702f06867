"""Go-to-definition, triggered by an explicit click rather than on hover."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ucmlens.cancellation import CancellationSignal
from ucmlens.models import DefinitionType
from ucmlens.naming.identifiers import starts_uppercase, word_at_position
from ucmlens.providers.base import Position, TextDocument
from ucmlens.resolution.resolver import resolve_to_fqn

if TYPE_CHECKING:
    from ucmlens.providers.context import EditorIntelligence

logger = logging.getLogger(__name__)


def guess_type(name: str) -> DefinitionType:
    """Capitalization heuristic used only when resolution fails.

    Known to misclassify lowercase type aliases and constructors.
    """
    return DefinitionType.TYPE if starts_uppercase(name) else DefinitionType.TERM


class DefinitionProvider:
    """Resolves and announces the definition the user clicked on.

    Definitions live in the codebase, not in files, so there is never a
    location to return; navigation goes through the definition-request
    observers instead.
    """

    def __init__(self, ctx: EditorIntelligence) -> None:
        self.ctx = ctx

    async def provide_definition(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None = None,
    ) -> None:
        # Called while hovering with the modifier held; resolving here would
        # hit the store for names the user never opens.
        word = word_at_position(document.line(position.line), position.character)
        logger.debug("Definition preview for %r (not resolved)", word)
        return None

    async def trigger_definition_click(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None = None,
    ) -> bool:
        """Resolve the clicked token and notify observers.

        Returns True if observers were notified.
        """
        try:
            return await self._trigger(document, position, token)
        except Exception:
            logger.exception("Definition click failed at %s:%d", document.uri, position.line)
            return False

    async def _trigger(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None,
    ) -> bool:
        word = word_at_position(document.line(position.line), position.character)
        if not word:
            logger.debug("No word at click position")
            return False

        resolved = None
        scope = self.ctx.scope
        if scope is None:
            logger.warning("No project/branch scope set; navigating to %r as typed", word)
        else:
            resolved = await resolve_to_fqn(
                self.ctx.store, scope, word, self.ctx.search.resolve_limit
            )

        if token is not None and token.is_cancellation_requested:
            return False

        if resolved:
            logger.debug(
                "Click on %r resolved to %s (%s)", word, resolved.fqn, resolved.type.value
            )
            self.ctx.navigation.emit(resolved.fqn, resolved.type)
        else:
            guessed = guess_type(word)
            logger.debug("Could not resolve %r, guessing %s", word, guessed.value)
            self.ctx.navigation.emit(word, guessed)
        return True
