"""Signature help provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ucmlens.cancellation import CancellationSignal
from ucmlens.exceptions import StoreError
from ucmlens.naming.identifiers import callee_at
from ucmlens.providers.base import (
    MarkupContent,
    ParameterInformation,
    Position,
    SignatureHelp,
    SignatureInformation,
    TextDocument,
)
from ucmlens.providers.formatting import (
    documentation_text,
    extract_type_signature,
    split_parameters,
)
from ucmlens.resolution.resolver import lookup_definition

if TYPE_CHECKING:
    from ucmlens.providers.context import EditorIntelligence

logger = logging.getLogger(__name__)


def active_parameter(line: str, character: int) -> int:
    """Count top-level commas between the innermost open paren and the cursor."""
    before = line[:character]
    depth = 0
    commas = 0
    for ch in reversed(before):
        if ch == ")":
            depth += 1
        elif ch == "(":
            if depth == 0:
                return commas
            depth -= 1
        elif ch == "," and depth == 0:
            commas += 1
    return commas


class SignatureHelpProvider:
    """Shows the type of the function whose argument list the cursor is in."""

    trigger_characters = ["(", " "]
    retrigger_characters = [","]

    def __init__(self, ctx: EditorIntelligence) -> None:
        self.ctx = ctx

    async def provide_signature_help(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None = None,
    ) -> SignatureHelp | None:
        try:
            return await self._provide(document, position, token)
        except StoreError as e:
            logger.warning("Signature lookup failed: %s", e)
        except Exception:
            logger.exception("Signature help failed at %s:%d", document.uri, position.line)
        return None

    async def _provide(
        self,
        document: TextDocument,
        position: Position,
        token: CancellationSignal | None,
    ) -> SignatureHelp | None:
        line = document.line(position.line)
        name = callee_at(line, position.character)
        if not name:
            return None

        scope = self.ctx.scope
        if scope is None:
            return None

        definition = await lookup_definition(
            self.ctx.store, scope, name, token, self.ctx.search.resolve_limit
        )
        if definition is None or (token is not None and token.is_cancellation_requested):
            return None

        signature = extract_type_signature(definition.source) or definition.signature
        if not signature:
            return None

        docs = documentation_text(definition)
        parameters = [ParameterInformation(label=p) for p in split_parameters(signature)]
        active = active_parameter(line, position.character)
        if parameters:
            active = min(active, len(parameters) - 1)
        return SignatureHelp(
            signatures=[
                SignatureInformation(
                    label=f"{name} : {signature}",
                    documentation=MarkupContent(value=docs) if docs else None,
                    parameters=parameters,
                )
            ],
            active_signature=0,
            active_parameter=active,
        )
