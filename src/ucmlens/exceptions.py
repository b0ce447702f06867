"""Custom exceptions for ucmlens."""


class UcmLensError(Exception):
    """Base exception for all ucmlens errors."""


class ConfigError(UcmLensError):
    """Configuration-related errors."""


class StoreError(UcmLensError):
    """Remote definition store errors (transport, HTTP status, bad payloads)."""


class StoreUnavailableError(StoreError):
    """Raised when the UCM codebase API cannot be reached."""

    def __init__(self, base_url: str):
        super().__init__(
            f"Could not reach the UCM codebase API at {base_url}. "
            f"Is UCM running? Start it with: ucm"
        )
