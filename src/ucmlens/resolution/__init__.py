"""Identifier resolution against the remote definition store."""

from ucmlens.resolution.definitions import DefinitionResolver
from ucmlens.resolution.resolver import resolve_to_fqn

__all__ = [
    "DefinitionResolver",
    "resolve_to_fqn",
]
