"""Remote definition store access."""

from ucmlens.store.base import DefinitionStore
from ucmlens.store.factory import create_store

__all__ = [
    "DefinitionStore",
    "create_store",
]
