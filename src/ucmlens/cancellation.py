"""Cancellation tokens handed to providers by the editor surface."""

from __future__ import annotations

from typing import Protocol


class CancellationSignal(Protocol):
    @property
    def is_cancellation_requested(self) -> bool: ...


class CancellationToken:
    """A one-shot flag set when the triggering editor request goes stale.

    Providers poll it after every await; nothing is interrupted mid-call.
    """

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
