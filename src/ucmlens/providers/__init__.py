"""Editor feature providers: hover, completion, definition, signature help."""

from ucmlens.providers.base import Position, TextDocument
from ucmlens.providers.context import EditorIntelligence, NavigationEvents

__all__ = [
    "EditorIntelligence",
    "NavigationEvents",
    "Position",
    "TextDocument",
]
