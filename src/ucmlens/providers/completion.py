"""Completion provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ucmlens.cancellation import CancellationSignal
from ucmlens.exceptions import StoreError
from ucmlens.models import DefinitionType, SearchResult
from ucmlens.naming.identifiers import dotted_prefix, last_segment, word_end, word_start
from ucmlens.providers.base import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    MarkupContent,
    Position,
    Range,
    TextDocument,
    TextEdit,
)

if TYPE_CHECKING:
    from ucmlens.providers.context import EditorIntelligence

logger = logging.getLogger(__name__)


class CompletionProvider:
    """Completes the dotted partial identifier left of the cursor.

    ``base.Li`` is searched as a whole, not as ``Li``. Queries shorter than
    the configured minimum never reach the store.
    """

    trigger_characters = ["."]

    def __init__(self, ctx: EditorIntelligence) -> None:
        self.ctx = ctx

    async def provide_completion_items(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None = None,
    ) -> CompletionList:
        try:
            return await self._provide(document, position, token)
        except StoreError as e:
            logger.warning("Completion search failed: %s", e)
        except Exception:
            logger.exception("Completion failed at %s:%d", document.uri, position.line)
        return CompletionList()

    async def _provide(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None,
    ) -> CompletionList:
        line = document.line(position.line)
        query = dotted_prefix(line, position.character)
        if len(query) < self.ctx.search.min_completion_length:
            return CompletionList()

        limit = self.ctx.search.completion_limit
        results = self.ctx.completion_cache.get(query)
        if results is not None:
            logger.debug("Completion cache hit for %r", query)
        else:
            scope = self.ctx.scope
            if scope is None:
                return CompletionList()
            results = await self.ctx.store.find_definitions(scope, query, limit)
            if token is not None and token.is_cancellation_requested:
                return CompletionList()
            if self.ctx.scope == scope:
                self.ctx.completion_cache.set(query, results)

        replace = Range(
            start=Position(line=position.line, character=word_start(line, position.character)),
            end=Position(line=position.line, character=word_end(line, position.character)),
        )
        return CompletionList(
            is_incomplete=len(results) >= limit,
            items=[self._item(result, replace) for result in results],
        )

    @staticmethod
    def _item(result: SearchResult, replace: Range) -> CompletionItem:
        insert = last_segment(result.name) or result.name
        return CompletionItem(
            label=result.name,
            kind=(
                CompletionItemKind.FUNCTION
                if result.type == DefinitionType.TERM
                else CompletionItemKind.CLASS
            ),
            detail=result.type.value,
            documentation=MarkupContent(value=f"Hash: `{result.hash[:8]}...`"),
            insert_text=insert,
            text_edit=TextEdit(range=replace, new_text=insert),
        )
