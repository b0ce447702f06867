"""Hover provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ucmlens.cancellation import CancellationSignal
from ucmlens.exceptions import StoreError
from ucmlens.models import Scope
from ucmlens.naming.identifiers import classify_numeric, in_string_literal, word_at_position
from ucmlens.providers.base import Hover, Position, TextDocument
from ucmlens.providers.formatting import hover_contents
from ucmlens.providers.syntax_help import (
    NUMERIC_LITERAL_HELP,
    TEXT_LITERAL_HELP,
    get_syntax_help,
)
from ucmlens.resolution.resolver import lookup_definition

if TYPE_CHECKING:
    from ucmlens.providers.context import EditorIntelligence

logger = logging.getLogger(__name__)


def flight_key(scope: Scope, word: str) -> str:
    """In-flight key for a hover; a scope change never joins an older flight."""
    return f"{scope}\x00{word}"


class HoverProvider:
    """Explains the token under the cursor.

    Checked in order, each short-circuiting the rest: built-in syntax help,
    text literal, numeric literal, then a remote lookup. Only remote-backed
    hovers are cached; the others depend on cursor context and are free.
    """

    def __init__(self, ctx: EditorIntelligence) -> None:
        self.ctx = ctx

    async def provide_hover(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None = None,
    ) -> Hover | None:
        try:
            return await self._provide_hover(document, position, token)
        except StoreError as e:
            logger.warning("Hover lookup failed: %s", e)
            return None
        except Exception:
            logger.exception(
                "Hover failed at %s:%d:%d", document.uri, position.line, position.character
            )
            return None

    async def _provide_hover(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None,
    ) -> Hover | None:
        line = document.line(position.line)
        word = word_at_position(line, position.character)
        if not word:
            return None

        help_text = get_syntax_help(word)
        if help_text:
            return Hover(contents=[help_text])

        if in_string_literal(line, position.character):
            return Hover(contents=[TEXT_LITERAL_HELP])

        numeric = classify_numeric(word)
        if numeric:
            return Hover(contents=[NUMERIC_LITERAL_HELP[numeric]])

        cached = self.ctx.hover_cache.get(word)
        if cached:
            logger.debug("Hover cache hit for %r", word)
            return cached

        scope = self.ctx.scope
        if scope is None:
            logger.warning("No project/branch scope set; skipping hover for %r", word)
            return None

        hover = await self.ctx.hover_flights.run(
            flight_key(scope, word),
            lambda flight_token: self._resolve(word, scope, flight_token),
            token,
        )
        if token is not None and token.is_cancellation_requested:
            return None
        if hover is not None and self.ctx.scope == scope:
            self.ctx.hover_cache.set(word, hover)
        return hover

    async def _resolve(
        self, word: str, scope: Scope, token: CancellationSignal
    ) -> Hover | None:
        logger.debug("Resolving hover for %r in %s", word, scope)
        definition = await lookup_definition(
            self.ctx.store, scope, word, token, self.ctx.search.resolve_limit
        )
        if definition is None:
            return None
        contents = hover_contents(definition)
        return Hover(contents=contents) if contents else None
