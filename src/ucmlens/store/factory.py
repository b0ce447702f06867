"""Factory for creating a definition store from configuration."""

from __future__ import annotations

from ucmlens.config import StoreConfig
from ucmlens.store.base import DefinitionStore


def create_store(config: StoreConfig) -> DefinitionStore:
    """Create the UCM-backed definition store.

    Args:
        config: Connection settings (host, port, timeout).

    Returns:
        A store ready to serve lookups.
    """
    from ucmlens.store.ucm import UCMStore

    return UCMStore(
        base_url=config.base_url,
        timeout=config.timeout,
        suffixify_bindings=config.suffixify_bindings,
    )
